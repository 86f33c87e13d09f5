# caminho: backoffice_app/shared/system_bootstrap.py
# Funções:
# - bootstrap_root_admin(): garante criação do administrador root do site na inicialização

from __future__ import annotations

from backoffice_app.config import get_settings
from backoffice_app.domain.admins.entities import Admin
from backoffice_app.domain.admins.enums import ADMIN_STATUS_ENABLED
from backoffice_app.infrastructure.db.base import SessionLocal
from backoffice_app.infrastructure.repositories.admin_repository import AdminRepositoryImpl
from backoffice_app.infrastructure.security.passwords import PasswordHasher
from backoffice_app.shared.logging import log_info, log_warning


async def bootstrap_root_admin() -> None:
    """Cria o administrador root padrão caso ainda não exista no SITE_ID configurado."""
    settings = get_settings()
    username = (settings.ROOT_AUTH_USER or '').strip()
    password = (settings.ROOT_AUTH_PASSWORD.get_secret_value() or '').strip()

    if not username or not password:
        log_warning('ROOT_ADMIN_BOOTSTRAP_SKIPPED', {'reason': 'missing_credentials'})
        return

    async with SessionLocal() as session:
        admins = AdminRepositoryImpl(session)
        existing = await admins.get_by_username_and_site(username, settings.SITE_ID)
        if existing is not None:
            log_info('ROOT_ADMIN_BOOTSTRAP_EXISTS', {'admin_id': existing.id, 'site_id': settings.SITE_ID})
            return

        created = await admins.add(
            Admin(
                site_id=settings.SITE_ID,
                username=username,
                nickname=settings.ROOT_AUTH_NICKNAME or username,
                password_hash=PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS).hash(password),
                admin_role_id=settings.ROOT_AUTH_ROLE_ID,
                status=ADMIN_STATUS_ENABLED,
            )
        )
        log_info('ROOT_ADMIN_BOOTSTRAP_CREATED', {'admin_id': created.id, 'site_id': settings.SITE_ID})
