from fastapi import Request

from school_directory.config.settings import Settings
from school_directory.database import QueryExecutor
from school_directory.services import SchoolService


def get_settings_from_app(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


def get_query_executor(request: Request) -> QueryExecutor:
    """Query executor backed by the app's connection pool."""
    return request.app.state.query_executor


def get_school_service(request: Request) -> SchoolService:
    """School service dependency."""
    return request.app.state.school_service
