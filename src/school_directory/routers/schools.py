import logging
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Response,
    UploadFile,
    status
)

from school_directory.config.settings import Settings
from school_directory.dependencies import get_school_service, get_settings_from_app
from school_directory.schemas import (
    AddSchoolResponse,
    ImageUpload,
    SchoolCandidate,
    SchoolFilter,
    SchoolOut,
)
from school_directory.services import SchoolService

logger = logging.getLogger(__name__)

router = APIRouter()

# Handlers are plain ``def``: the service blocks on sqlite3, boto3 and retry
# sleeps, so FastAPI runs them in its threadpool.

ERROR_STATUS = {
    "validation": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "conflict": status.HTTP_409_CONFLICT,
}


def _read_image(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    if image is None or not image.filename:
        return None
    content = image.file.read()
    return ImageUpload(
        filename=image.filename,
        content_type=image.content_type or "",
        content=content,
        size=image.size if image.size is not None else len(content),
    )


@router.post(
    "/schools",
    response_model=AddSchoolResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def add_school(
    response: Response,
    name: str = Form(""),
    address: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    contact: str = Form(""),
    email_id: str = Form(""),
    image: Optional[UploadFile] = File(None),
    school_service: SchoolService = Depends(get_school_service),
) -> AddSchoolResponse:
    """
    Add a school from a multipart form submission.

    Field problems are all reported together. A school whose name already
    exists in the same city is rejected before the image is stored.

    Returns:
        AddSchoolResponse: ``{success: true, id}`` or ``{success: false, errors}``
    """
    candidate = SchoolCandidate(
        name=name,
        address=address,
        city=city,
        state=state,
        contact=contact,
        email_id=email_id,
        image=_read_image(image),
    )

    result = school_service.add_school(candidate)
    if not result.success:
        response.status_code = ERROR_STATUS.get(result.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return result


@router.get("/schools", response_model=List[SchoolOut])
def list_schools(
    filters: SchoolFilter = Depends(),
    settings: Settings = Depends(get_settings_from_app),
    school_service: SchoolService = Depends(get_school_service),
) -> List[SchoolOut]:
    """
    List schools, newest first, optionally filtered by state, city and a search term.

    An empty list is returned both when nothing matches and when the lookup fails.
    """
    return [
        SchoolOut.from_record(record, settings.public_image_path)
        for record in school_service.list_schools(filters)
    ]


@router.get("/schools/states", response_model=List[str])
def list_states(school_service: SchoolService = Depends(get_school_service)) -> List[str]:
    """Distinct states that have at least one school, alphabetically."""
    return school_service.list_states()


@router.get("/schools/cities", response_model=List[str])
def list_cities(school_service: SchoolService = Depends(get_school_service)) -> List[str]:
    """Distinct cities that have at least one school, alphabetically."""
    return school_service.list_cities()
