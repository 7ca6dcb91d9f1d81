from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A database URL must be configured for the record stores.
    - Numeric TRAWL_* overrides, when present, must parse as numbers.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    database_url = os.getenv("DATABASE_URL", "").strip()
    cloud_database_url = os.getenv("CLOUD_DATABASE_URL", "").strip()
    local_database_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
    if not database_url and not cloud_database_url and not local_database_url:
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    # --- Trawl overrides ------------------------------------------------
    numeric_vars = (
        "TRAWL_CONCURRENCY",
        "TRAWL_FETCH_TIMEOUT_MS",
        "TRAWL_FETCH_MAX_RETRIES",
        "TRAWL_FETCH_BACKOFF_INITIAL_MS",
        "TRAWL_FETCH_BACKOFF_MULTIPLIER",
        "TRAWL_IMAGE_FETCH_TIMEOUT_MS",
        "TRAWL_RENDER_DELAY_MS",
        "TRAWL_NAVIGATION_TIMEOUT_MAX_MS",
        "TRAWL_DEADLINE_MS",
        "TRAWL_DEADLINE_SKIP_RENDER_MS",
        "TRAWL_MAX_IMAGES_PER_SITE",
        "TRAWL_MAX_GAP_WORDS",
    )
    for name in numeric_vars:
        raw = os.getenv(name)
        if raw is None:
            continue
        try:
            float(raw)
        except ValueError:
            errors.append(f"{name}={raw!r} is not a number.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every record-store table must exist in the database; if any are missing,
    log a critical error and abort startup so migrations are run first.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def _check_trawl_config() -> None:
    """Load the synonym table and marketplace shapes so bad config fails at boot."""
    from app.config import get_trawl_settings
    from app.trawling.config import load_marketplace_shapes, load_synonym_table

    settings = get_trawl_settings()
    synonyms = load_synonym_table(settings.synonyms_path)
    shapes = load_marketplace_shapes(settings.marketplaces_path)
    logging.getLogger(__name__).info(
        "Trawl config loaded: %d synonym entries, %d marketplace shapes",
        len(synonyms),
        len(shapes),
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity, schema and trawl config on boot."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    _check_trawl_config()
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Patent Trawl API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import (
        competitors_router,
        images_router,
        keywords_router,
        trawl_router,
    )

    application.include_router(trawl_router)
    application.include_router(competitors_router)
    application.include_router(keywords_router)
    application.include_router(images_router)

    from fastapi.staticfiles import StaticFiles

    from app.config import get_upload_settings

    upload_settings = get_upload_settings()
    application.mount(
        upload_settings.public_prefix,
        StaticFiles(directory=upload_settings.uploads_dir, check_dir=False),
        name="uploads",
    )

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
