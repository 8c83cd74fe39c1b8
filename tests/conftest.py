pytest_plugins = [
    "tests.fixtures.db_client",
    "tests.fixtures.school_fixtures",
    "tests.fixtures.s3_fixtures",
]
