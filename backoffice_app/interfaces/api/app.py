# caminho: backoffice_app/interfaces/api/app.py
# Funções:
# - create_application(): configura FastAPI com handlers de erro, rotas e lifespan

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from backoffice_app.application.admins.dto import ApiResponse
from backoffice_app.config import get_settings
from backoffice_app.interfaces.api.errors import register_exception_handlers
from backoffice_app.interfaces.api.routers import admin, auth, roles
from backoffice_app.shared.logging import log_info, setup_logging
from backoffice_app.shared.system_bootstrap import bootstrap_root_admin


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.BOOTSTRAP_ROOT_ADMIN:
        await bootstrap_root_admin()
    log_info('APP_STARTUP', {
        'environment': settings.DEPLOYMENT_ENVIRONMENT,
        'site_id': settings.SITE_ID,
        'database': settings.POSTGRES_DSN_SAFE,
    })

    yield

    log_info('APP_SHUTDOWN', {'reason': 'lifespan'})


def create_application() -> FastAPI:
    settings = get_settings()
    setup_logging(level=settings.LOG_LEVEL)

    app = FastAPI(
        title='backoffice-app',
        version='0.3.0',
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(roles.router)

    @app.get('/health', response_model=ApiResponse[None], tags=['health'], summary='Verificação de saúde')
    async def health() -> ApiResponse[None]:
        return ApiResponse()

    return app
