from typing import Optional, Tuple

from fastapi import FastAPI

from abacgate import __version__
from abacgate.common.config import build_catalog, build_mapper, build_store, load_policy
from abacgate.common.logger import get_logger, setup_logger
from abacgate.core.abac.catalog import SensitiveFieldCatalog, default_catalog
from abacgate.core.abac.defaults import get_all_default_resources, get_default_attributes
from abacgate.core.abac.service import ABACService
from abacgate.core.config import Settings, get_settings
from abacgate.core.pipeline.machine import InterceptionPipeline
from abacgate.core.pipeline.mapper import PathResourceMapper
from abacgate.core.store.base import PermissionStore
from abacgate.core.store.memory import InMemoryPermissionStore
from abacgate.core.store.sql import SQLAlchemyPermissionStore
from abacgate.db.session import make_session_factory
from abacgate.api.middleware.abac import ABACMiddleware
from abacgate.api.middleware.auth import AuthenticationMiddleware

logger = get_logger("api")


def default_store() -> InMemoryPermissionStore:
    """In-memory store holding the built-in users/roles/payrolls resources."""
    resources = get_all_default_resources()
    attributes = [a for r in resources for a in get_default_attributes(r.name)]
    return InMemoryPermissionStore(resources, attributes)


def build_components(
    settings: Settings,
) -> Tuple[PermissionStore, SensitiveFieldCatalog, PathResourceMapper]:
    """Pick the policy source: policy file, then database, then built-in defaults."""
    if settings.policy_file:
        logger.info(f"Loading policy from {settings.policy_file}")
        policy = load_policy(settings.policy_file)
        return (
            build_store(policy),
            build_catalog(policy),
            build_mapper(policy, base_path=settings.api_prefix),
        )

    mapper = PathResourceMapper(base_path=settings.api_prefix)
    if settings.database_url:
        logger.info("Reading permissions from the database")
        store = SQLAlchemyPermissionStore(make_session_factory(settings.database_url))
        return store, default_catalog, mapper

    logger.info("Using built-in default resources")
    return default_store(), default_catalog, mapper


def create_app(
    store: Optional[PermissionStore] = None,
    settings: Optional[Settings] = None,
    catalog: Optional[SensitiveFieldCatalog] = None,
    mapper: Optional[PathResourceMapper] = None,
) -> FastAPI:
    """Build the application with authentication and access-control middleware."""
    settings = settings or get_settings()
    setup_logger(
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.file_logging,
    )

    if store is None:
        store, configured_catalog, configured_mapper = build_components(settings)
        catalog = catalog or configured_catalog
        mapper = mapper or configured_mapper
    mapper = mapper or PathResourceMapper(base_path=settings.api_prefix)

    service = ABACService(
        store,
        catalog,
        single_record_fallback=settings.single_record_fallback,
    )
    pipeline = InterceptionPipeline(service, mapper)

    app = FastAPI(
        title=settings.app_name,
        description="Role and attribute based access control for JSON APIs",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.permission_store = store
    app.state.abac_service = service
    app.state.pipeline = pipeline

    # Added first so it runs inside authentication
    app.add_middleware(ABACMiddleware, pipeline=pipeline)
    app.add_middleware(AuthenticationMiddleware, settings=settings)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    return app
