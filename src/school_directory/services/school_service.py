"""
School service.

Orchestrates the add pipeline (validate, duplicate check, store image, insert,
clean up the image if the insert fails) and the read queries behind the
listing page.
"""

import logging
import sqlite3
from typing import Any, List, Optional, Tuple

from school_directory.adapters.storage import BaseImageStore, image_extension
from school_directory.database.executor import QueryExecutor
from school_directory.database.local import SCHOOLS_TABLE
from school_directory.errors import (
    ConflictError,
    PersistenceError,
    SchoolDirectoryError,
    StorageError,
    ValidationError,
)
from school_directory.schemas import AddSchoolResponse, SchoolCandidate, SchoolFilter, SchoolRecord
from school_directory.utils.decorators import log_execution_time
from school_directory.validation import SchoolValidator

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "A school with this name already exists in this city"
STORAGE_FAILURE_MESSAGE = "Failed to upload school image"
PERSISTENCE_FAILURE_MESSAGE = "Failed to add school"

SEARCH_COLUMNS = ("name", "city", "state", "address")
LIKE_ESCAPE = "\\"


def _like_pattern(term: str) -> str:
    """Substring LIKE pattern with ``%`` and ``_`` in the term matched literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


def build_school_query(filters: Optional[SchoolFilter] = None) -> Tuple[str, List[Any]]:
    """Build the listing query and its positional parameters.

    state and city are exact matches; search is a case-insensitive substring
    over name, city, state and address, compared through the ``casefold`` SQL
    function the connection pool registers. Present filters are ANDed together.
    """
    filters = filters or SchoolFilter()
    clauses: List[str] = []
    params: List[Any] = []

    if filters.state:
        clauses.append("state = ?")
        params.append(filters.state)
    if filters.city:
        clauses.append("city = ?")
        params.append(filters.city)
    if filters.search:
        pattern = _like_pattern(filters.search.casefold())
        clauses.append(
            "(" + " OR ".join(f"casefold({column}) LIKE ? ESCAPE '{LIKE_ESCAPE}'" for column in SEARCH_COLUMNS) + ")"
        )
        params.extend([pattern] * len(SEARCH_COLUMNS))

    sql = f"SELECT * FROM {SCHOOLS_TABLE}"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY id DESC"
    return sql, params


def failure_response(error: SchoolDirectoryError) -> AddSchoolResponse:
    """Uniform failure envelope for an add that did not go through."""
    if isinstance(error, ValidationError):
        kind, errors = "validation", error.messages
    elif isinstance(error, ConflictError):
        kind, errors = "conflict", [DUPLICATE_MESSAGE]
    elif isinstance(error, StorageError):
        kind, errors = "storage", [STORAGE_FAILURE_MESSAGE]
    else:
        kind, errors = "persistence", [PERSISTENCE_FAILURE_MESSAGE]
    return AddSchoolResponse(success=False, errors=errors, error_kind=kind)


class SchoolService:
    """Service for adding and browsing schools"""

    def __init__(
        self,
        executor: QueryExecutor,
        image_store: BaseImageStore,
        validator: Optional[SchoolValidator] = None,
    ):
        self.executor = executor
        self.image_store = image_store
        self.validator = validator or SchoolValidator()

    def _exists(self, name: str, city: str) -> bool:
        try:
            result = self.executor.execute(
                f"SELECT id FROM {SCHOOLS_TABLE} WHERE name = ? AND city = ?",
                [name, city],
            )
        except Exception as e:
            logger.error(f"Error checking for duplicate school: {e}")
            raise PersistenceError(f"Duplicate check failed: {e}") from e
        return len(result.rows) > 0

    def _compensate(self, reference: str) -> None:
        if not self.image_store.discard(reference):
            logger.warning(
                f"Insert failed after storing image on the {self.image_store.backend} backend; "
                f"{reference} is left orphaned"
            )

    @log_execution_time
    def create_school(self, candidate: SchoolCandidate) -> int:
        """Add a school and return its id.

        Raises:
            ValidationError: the candidate broke one or more field rules.
            ConflictError: a school with the same name already exists in the city.
            StorageError: the image could not be stored.
            PersistenceError: the duplicate check or insert failed.
        """
        school = self.validator.validate(candidate)

        if self._exists(school.name, school.city):
            logger.info(f"Rejected duplicate school {school.name!r} in {school.city!r}")
            raise ConflictError(DUPLICATE_MESSAGE)

        image = school.image
        reference = self.image_store.store(
            image.content,
            school.name,
            image_extension(image.filename, image.content_type),
            content_type=image.content_type,
        )

        try:
            result = self.executor.execute(
                f"INSERT INTO {SCHOOLS_TABLE} (name, address, city, state, contact, image, email_id) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    school.name,
                    school.address,
                    school.city,
                    school.state,
                    school.contact,
                    reference,
                    school.email_id,
                ],
            )
        except sqlite3.IntegrityError as e:
            logger.error(f"Insert rejected by constraint: {e}")
            self._compensate(reference)
            raise ConflictError(DUPLICATE_MESSAGE) from e
        except Exception as e:
            logger.error(f"Error inserting school: {e}")
            self._compensate(reference)
            raise PersistenceError(f"Insert failed: {e}") from e

        logger.info(f"Created school {result.lastrowid}: {school.name!r} in {school.city!r}")
        return result.lastrowid

    def add_school(self, candidate: SchoolCandidate) -> AddSchoolResponse:
        """Add a school, reporting the outcome as a success/errors envelope."""
        try:
            school_id = self.create_school(candidate)
        except SchoolDirectoryError as e:
            logger.error(f"Error adding school: {e}")
            return failure_response(e)
        return AddSchoolResponse(success=True, id=school_id)

    def list_schools(self, filters: Optional[SchoolFilter] = None) -> List[SchoolRecord]:
        """List schools newest first. Query failures are logged and yield an empty list."""
        sql, params = build_school_query(filters)
        try:
            result = self.executor.execute(sql, params)
        except Exception as e:
            logger.error(f"Error listing schools: {e}")
            return []
        return [SchoolRecord(**row) for row in result.rows]

    def _distinct(self, column: str) -> List[str]:
        try:
            result = self.executor.execute(
                f"SELECT DISTINCT {column} FROM {SCHOOLS_TABLE} "
                f"WHERE {column} IS NOT NULL AND {column} != '' ORDER BY {column}"
            )
        except Exception as e:
            logger.error(f"Error listing distinct {column} values: {e}")
            return []
        return [row[column] for row in result.rows]

    def list_states(self) -> List[str]:
        """Distinct non-empty states, ascending."""
        return self._distinct("state")

    def list_cities(self) -> List[str]:
        """Distinct non-empty cities, ascending."""
        return self._distinct("city")
