from contextlib import asynccontextmanager
from textwrap import dedent
import logging
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from school_directory.adapters.storage import BaseImageStore, ImageStoreFactory, LocalImageStore
from school_directory.config.settings import Settings, configure_logging
from school_directory.database import ConnectionPool, QueryExecutor, init_db
from school_directory.errors import (
    handle_broad_exceptions,
    handle_pydantic_validation_errors,
)
from school_directory.routers.health import router as health_router
from school_directory.routers.schools import router as schools_router
from school_directory.services import SchoolService
from school_directory.validation import SchoolValidator

# Set up logging
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    image_store: Optional[BaseImageStore] = None,
) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or Settings()
    configure_logging(settings.log_level)

    pool = ConnectionPool(
        settings.database_url,
        size=settings.db_pool_size,
        timeout=settings.db_pool_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        pool.close()

    app = FastAPI(
        title="School Directory API",
        summary="Register schools and browse the directory",
        version="v1",
        description=dedent(
            """\
        Submit school records with an image, then list, filter and search them.

        | Endpoint | Notes |
        | --- | --- |
        | `POST /v1/schools` | multipart form: name, address, city, state, contact, email_id, image |
        | `GET /v1/schools` | optional `state`, `city`, `search` |
        """
        ),
        docs_url="/",  # its easier to find the docs when they live on the base url
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    executor = QueryExecutor(
        pool,
        max_attempts=settings.query_max_attempts,
        retry_delay=settings.query_retry_delay,
    )
    logger.info("creating db")
    init_db(executor)

    image_store = image_store or ImageStoreFactory.get_image_store(settings)

    app.state.settings = settings
    app.state.query_executor = executor
    app.state.school_service = SchoolService(
        executor,
        image_store,
        SchoolValidator(max_image_bytes=settings.max_image_bytes),
    )

    app.include_router(schools_router, prefix="/v1", tags=["schools"])
    app.include_router(health_router, tags=["health"])

    if isinstance(image_store, LocalImageStore):
        app.mount(
            settings.public_image_path,
            StaticFiles(directory=image_store.upload_dir, check_dir=False),
            name="school-images",
        )

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
