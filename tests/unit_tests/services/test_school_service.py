import sqlite3

import pytest
from school_directory.adapters.storage import BaseImageStore
from school_directory.database import QueryExecutor
from school_directory.errors import ConflictError, PersistenceError, StorageError, ValidationError
from school_directory.schemas import ImageUpload, SchoolFilter
from school_directory.services import SchoolService, build_school_query
from school_directory.services.school_service import (
    DUPLICATE_MESSAGE,
    PERSISTENCE_FAILURE_MESSAGE,
    STORAGE_FAILURE_MESSAGE,
)
from tests.fixtures.db_client import FailingInsertExecutor, count_schools
from tests.fixtures.school_fixtures import make_candidate


class RecordingStore(BaseImageStore):
    """Remote-style store that keeps uploads in memory and cannot undo them."""
    backend = "s3"

    def __init__(self, fail=False):
        self.objects = {}
        self.fail = fail

    def store(self, content, name, extension, content_type=None):
        if self.fail:
            raise StorageError("bucket unavailable")
        reference = f"https://bucket.s3.us-east-1.amazonaws.com/schoolImages/{len(self.objects)}_{name}{extension}"
        self.objects[reference] = content
        return reference


def stored_files(upload_dir):
    return sorted(p.name for p in upload_dir.iterdir()) if upload_dir.exists() else []


def seed(service, **overrides):
    return service.create_school(make_candidate(**overrides))


# --- add ---

def test_add_valid_school(school_service, executor, upload_dir):
    image = ImageUpload(filename="oak.jpg", content_type="image/jpeg", content=b"\xff" * 500 * 1024, size=500 * 1024)

    response = school_service.add_school(make_candidate(image=image))

    assert response.success is True
    assert response.id > 0
    assert response.errors is None
    assert response.error_kind is None
    rows = executor.execute("SELECT * FROM schools").rows
    assert len(rows) == 1
    assert rows[0]["image"]
    assert stored_files(upload_dir) == [rows[0]["image"]]


def test_add_duplicate_name_and_city_is_rejected(school_service, executor, upload_dir):
    assert school_service.add_school(make_candidate()).success
    files_before = stored_files(upload_dir)

    response = school_service.add_school(make_candidate(address="Somewhere else"))

    assert response.success is False
    assert response.errors == [DUPLICATE_MESSAGE]
    assert response.error_kind == "conflict"
    assert count_schools(executor) == 1
    assert stored_files(upload_dir) == files_before


def test_same_name_in_another_city_is_allowed(school_service, executor):
    seed(school_service, city="Austin")
    seed(school_service, city="Dallas")
    assert count_schools(executor) == 2


def test_invalid_school_has_no_side_effects(school_service, executor, upload_dir):
    response = school_service.add_school(make_candidate(name="", contact="abc", email_id="nope"))

    assert response.success is False
    assert response.errors == [
        "Name is required",
        "Name must be alphanumeric",
        "Contact must be a 10-digit number",
        "Invalid email format",
    ]
    assert response.error_kind == "validation"
    assert count_schools(executor) == 0
    assert stored_files(upload_dir) == []


def test_create_school_raises_typed_errors(school_service):
    with pytest.raises(ValidationError):
        school_service.create_school(make_candidate(city="Austin1"))

    seed(school_service)
    with pytest.raises(ConflictError):
        seed(school_service)


def test_failed_insert_removes_local_image(executor, image_store, upload_dir):
    failing = FailingInsertExecutor(executor, sqlite3.OperationalError("disk I/O error"))
    service = SchoolService(failing, image_store)

    response = service.add_school(make_candidate())

    assert response.success is False
    assert response.errors == [PERSISTENCE_FAILURE_MESSAGE]
    assert response.error_kind == "persistence"
    assert stored_files(upload_dir) == []
    assert count_schools(executor) == 0


def test_insert_hitting_unique_constraint_is_a_conflict(executor, image_store, upload_dir):
    failing = FailingInsertExecutor(executor, sqlite3.IntegrityError("UNIQUE constraint failed"))
    service = SchoolService(failing, image_store)

    with pytest.raises(ConflictError):
        service.create_school(make_candidate())
    assert stored_files(upload_dir) == []


def test_failed_insert_leaves_remote_image_orphaned(executor, caplog):
    store = RecordingStore()
    failing = FailingInsertExecutor(executor, sqlite3.OperationalError("disk I/O error"))
    service = SchoolService(failing, store)

    with pytest.raises(PersistenceError):
        service.create_school(make_candidate())

    assert len(store.objects) == 1
    assert "left orphaned" in caplog.text


def test_storage_failure_aborts_before_insert(executor):
    service = SchoolService(executor, RecordingStore(fail=True))

    response = service.add_school(make_candidate())

    assert response.success is False
    assert response.errors == [STORAGE_FAILURE_MESSAGE]
    assert response.error_kind == "storage"
    assert count_schools(executor) == 0


def test_remote_store_reference_is_persisted(executor):
    store = RecordingStore()
    service = SchoolService(executor, store)

    school_id = seed(service)

    row = executor.execute("SELECT image FROM schools WHERE id = ?", [school_id]).rows[0]
    assert row["image"] in store.objects


def test_duplicate_check_failure_is_a_persistence_error(pool, image_store, upload_dir):
    service = SchoolService(QueryExecutor(pool), image_store)  # schools table never created

    response = service.add_school(make_candidate())

    assert response.errors == [PERSISTENCE_FAILURE_MESSAGE]
    assert stored_files(upload_dir) == []


def test_failure_kind_is_not_serialized(school_service):
    response = school_service.add_school(make_candidate(contact="123"))

    assert response.error_kind == "validation"
    assert response.model_dump(exclude_none=True) == {
        "success": False,
        "errors": ["Contact must be a 10-digit number"],
    }


def test_oak_hill_example(school_service):
    image = ImageUpload(filename="oak.jpeg", content_type="image/jpeg", content=b"\xff" * 500 * 1024, size=500 * 1024)
    candidate = make_candidate(name="Oak Hill", city="Austin", state="Texas", contact="5125551234", email_id="a@b.com", image=image)

    first = school_service.add_school(candidate)
    second = school_service.add_school(candidate)

    assert first.success is True and first.id > 0
    assert second.success is False
    assert second.errors == [DUPLICATE_MESSAGE]


# --- list ---

@pytest.fixture
def directory(school_service):
    seed(school_service, name="Oak Hill", city="Austin", state="Texas", address="12 Ridge Road")
    seed(school_service, name="Pine Ridge", city="Dallas", state="Texas", address="4 Oakwood Ave")
    seed(school_service, name="Lakeside", city="Austin", state="Texas", address="9 Shore Dr")
    seed(school_service, name="Riverdale", city="Oakland", state="California", address="1 Main St")
    seed(school_service, name="Hillcrest", city="Portland", state="Oregon", address="77 Elm St")
    return school_service


def names(records):
    return [record.name for record in records]


def test_list_without_filter_returns_all_newest_first(directory):
    records = directory.list_schools()
    assert names(records) == ["Hillcrest", "Riverdale", "Lakeside", "Pine Ridge", "Oak Hill"]
    assert [r.id for r in records] == sorted((r.id for r in records), reverse=True)


def test_search_is_case_insensitive_across_fields(directory):
    records = directory.list_schools(SchoolFilter(search="OAK"))
    # name, address and city matches respectively
    assert names(records) == ["Riverdale", "Pine Ridge", "Oak Hill"]


def test_search_folds_non_ascii_case(directory):
    seed(directory, name="Maple Grove", city="Austin", state="Texas", address="12 École Street")

    assert names(directory.list_schools(SchoolFilter(search="école"))) == ["Maple Grove"]
    assert names(directory.list_schools(SchoolFilter(search="ÉCOLE"))) == ["Maple Grove"]
    assert names(directory.list_schools(SchoolFilter(search="ÉCOLE", state="Texas"))) == ["Maple Grove"]


def test_search_matches_state(directory):
    assert names(directory.list_schools(SchoolFilter(search="orego"))) == ["Hillcrest"]


def test_state_and_city_filters_combine(directory):
    records = directory.list_schools(SchoolFilter(state="Texas", city="Austin"))
    assert names(records) == ["Lakeside", "Oak Hill"]


def test_exact_filters_combine_with_search(directory):
    records = directory.list_schools(SchoolFilter(state="Texas", search="ridge"))
    assert names(records) == ["Pine Ridge", "Oak Hill"]


def test_state_filter_is_exact(directory):
    assert directory.list_schools(SchoolFilter(state="Tex")) == []


def test_no_match_is_empty(directory):
    assert directory.list_schools(SchoolFilter(search="zzz")) == []


def test_search_wildcards_are_literal(directory):
    assert directory.list_schools(SchoolFilter(search="%")) == []
    assert directory.list_schools(SchoolFilter(search="_")) == []


def test_read_failures_degrade_to_empty(school_service, pool):
    seed(school_service)
    pool.close()

    assert school_service.list_schools() == []
    assert school_service.list_states() == []
    assert school_service.list_cities() == []


def test_distinct_states_and_cities(directory, executor):
    executor.execute(
        "INSERT INTO schools (name, address, city, state, contact, image, email_id) VALUES (?, ?, ?, ?, ?, ?, ?)",
        ["Blank", "addr", "", "", "5125551234", "x.jpg", "x@b.com"],
    )

    assert directory.list_states() == ["California", "Oregon", "Texas"]
    assert directory.list_cities() == ["Austin", "Dallas", "Oakland", "Portland"]


def test_build_school_query_without_filters():
    sql, params = build_school_query()
    assert sql == "SELECT * FROM schools ORDER BY id DESC"
    assert params == []


def test_build_school_query_with_all_filters():
    sql, params = build_school_query(SchoolFilter(state="Texas", city="Austin", search="oak"))
    assert sql.startswith("SELECT * FROM schools WHERE state = ? AND city = ? AND (casefold(name) LIKE ?")
    assert sql.endswith("ORDER BY id DESC")
    assert params == ["Texas", "Austin", "%oak%", "%oak%", "%oak%", "%oak%"]
