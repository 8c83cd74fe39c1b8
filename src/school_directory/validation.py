"""Field rules for submitted schools.

Every rule runs independently and each failing rule contributes one message,
so a submission is reported with all of its problems at once.
"""

import re
from typing import Callable, List, Tuple

from email_validator import EmailNotValidError, validate_email

from school_directory.errors import ValidationError
from school_directory.schemas import SchoolCandidate

MAX_IMAGE_BYTES = 2 * 1024 * 1024
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/jpg")

NAME_PATTERN = re.compile(r"[A-Za-z0-9 ]+")
CITY_PATTERN = re.compile(r"[A-Za-z ]+")
CONTACT_PATTERN = re.compile(r"[0-9]{10}")

Rule = Tuple[str, Callable[[SchoolCandidate], bool]]


def format_size_limit(limit: int) -> str:
    """Largest unit that states ``limit`` exactly: MB, KB, else bytes."""
    for unit, factor in (("MB", 1024 * 1024), ("KB", 1024)):
        if limit >= factor and limit % factor == 0:
            return f"{limit // factor}{unit}"
    return f"{limit} bytes"


def _is_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class SchoolValidator:
    """Checks a :class:`SchoolCandidate` against the school field rules."""

    def __init__(self, max_image_bytes: int = MAX_IMAGE_BYTES, allowed_image_types=ALLOWED_IMAGE_TYPES):
        self.max_image_bytes = max_image_bytes
        self.allowed_image_types = tuple(allowed_image_types)
        self.rules: List[Rule] = [
            ("Name is required", lambda c: bool(c.name)),
            ("Name must be alphanumeric", lambda c: NAME_PATTERN.fullmatch(c.name) is not None),
            ("Address is required", lambda c: bool(c.address)),
            ("City is required", lambda c: bool(c.city)),
            ("City must contain only alphabets", lambda c: CITY_PATTERN.fullmatch(c.city) is not None),
            ("State is required", lambda c: bool(c.state)),
            ("Contact is required", lambda c: bool(c.contact)),
            ("Contact must be a 10-digit number", lambda c: CONTACT_PATTERN.fullmatch(c.contact) is not None),
            ("Email is required", lambda c: bool(c.email_id)),
            ("Invalid email format", lambda c: _is_email(c.email_id)),
            ("Image is required", self._has_image),
            (f"File size too large (max {format_size_limit(self.max_image_bytes)})", self._image_size_ok),
            ("Unsupported file format", self._image_type_ok),
        ]

    @staticmethod
    def _has_image(candidate: SchoolCandidate) -> bool:
        return candidate.image is not None and candidate.image.size > 0

    def _image_size_ok(self, candidate: SchoolCandidate) -> bool:
        return self._has_image(candidate) and candidate.image.size <= self.max_image_bytes

    def _image_type_ok(self, candidate: SchoolCandidate) -> bool:
        return (
            self._has_image(candidate)
            and candidate.image.content_type.lower() in self.allowed_image_types
        )

    def violations(self, candidate: SchoolCandidate) -> List[str]:
        """Return one message per failed rule, in rule order."""
        return [message for message, check in self.rules if not check(candidate)]

    def validate(self, candidate: SchoolCandidate) -> SchoolCandidate:
        """Return the candidate unchanged if it passes every rule.

        Raises:
            ValidationError: with every violation message.
        """
        messages = self.violations(candidate)
        if messages:
            raise ValidationError(messages)
        return candidate
