####################################
# --- Request/response schemas --- #
####################################

import re
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator
)
from typing_extensions import Self

URI_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
DEFAULT_PUBLIC_IMAGE_PATH = "/schoolImages"


def resolve_image_url(reference: str, public_path: str = DEFAULT_PUBLIC_IMAGE_PATH) -> str:
    """Turn a stored image reference into something a browser can load.

    References that already carry a URI scheme (S3 uploads) are returned as-is;
    bare filenames are served from ``public_path``.
    """
    if not reference or URI_SCHEME_PATTERN.match(reference):
        return reference
    return f"{public_path.rstrip('/')}/{reference.lstrip('/')}"


class ImageUpload(BaseModel):
    """An uploaded image as received from the form, before it is stored."""
    filename: str = ""
    content_type: str = ""
    content: bytes = b""
    size: int = Field(0, ge=0, description="Declared size of the upload in bytes.")


class SchoolCandidate(BaseModel):
    """A school submitted for creation. Nothing here is trusted until validated."""
    name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    contact: str = ""
    email_id: str = ""
    image: Optional[ImageUpload] = None

    @model_validator(mode="after")
    def strip_text_fields(self) -> Self:
        for field_name in ("name", "address", "city", "state", "contact", "email_id"):
            setattr(self, field_name, (getattr(self, field_name) or "").strip())
        return self


class SchoolRecord(BaseModel):
    """A stored school row."""
    id: int
    name: str
    address: str
    city: str
    state: str
    contact: str
    image: str = Field(description="Stored image reference: a filename or a full URL.")
    email_id: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Oak Hill",
                "address": "12 Ridge Road",
                "city": "Austin",
                "state": "Texas",
                "contact": "5125551234",
                "image": "1718000000000_Oak_Hill.jpg",
                "email_id": "office@oakhill.edu",
            }
        }
    )


class SchoolOut(SchoolRecord):
    """Response model for a listed school."""
    image_url: str = Field(description="Browser-loadable URL for the school image.")

    @classmethod
    def from_record(cls, record: SchoolRecord, public_path: str = DEFAULT_PUBLIC_IMAGE_PATH) -> "SchoolOut":
        return cls(**record.model_dump(), image_url=resolve_image_url(record.image, public_path))


class SchoolFilter(BaseModel):
    """Query parameters for `GET /v1/schools`. Blank values count as absent."""
    state: Optional[str] = Field(None, description="Exact state match.")
    city: Optional[str] = Field(None, description="Exact city match.")
    search: Optional[str] = Field(
        None,
        description="Case-insensitive substring matched against name, city, state and address.",
    )

    @model_validator(mode="after")
    def blank_values_are_absent(self) -> Self:
        for field_name in ("state", "city", "search"):
            value = getattr(self, field_name)
            if value is not None:
                value = value.strip()
            setattr(self, field_name, value or None)
        return self


class AddSchoolResponse(BaseModel):
    """Response model for `POST /v1/schools`."""
    success: bool
    id: Optional[int] = None
    errors: Optional[List[str]] = None
    error_kind: Optional[str] = Field(
        None,
        exclude=True,
        description="validation, conflict, storage or persistence; never serialized.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"success": True, "id": 7},
                {"success": False, "errors": ["Contact must be a 10-digit number"]},
            ]
        }
    )
