# caminho: backoffice_app/interfaces/api/dependencies.py
# Funções:
# - get_client_ip(): IP do cliente (primeiro salto do X-Forwarded-For)
# - get_user_locale(): idioma preferido do cliente (Accept-Language)
# - get_admin_service(): instancia AdminService com adapters concretos

from __future__ import annotations

from typing import Annotated, Callable

from fastapi import Depends, Header, Request

from backoffice_app.application.admins.use_cases import AdminAdapters, AdminService
from backoffice_app.config import get_settings
from backoffice_app.infrastructure.cache.redis import get_redis_client
from backoffice_app.infrastructure.db.base import get_session
from backoffice_app.infrastructure.repositories.admin_repository import (
    AdminLogRepositoryImpl,
    AdminRepositoryImpl,
    AdminRoleRepositoryImpl,
    PermissionRepositoryImpl,
)
from backoffice_app.infrastructure.security.passwords import PasswordHasher
from backoffice_app.infrastructure.security.totp import TotpVerifier
from backoffice_app.shared.auth_dependencies import AdminIdentity, get_jwt_service, resolve_admin_identity
from backoffice_app.shared.i18n import get_translator
from backoffice_app.shared.otp_guard import NullOtpReplayGuard, RedisOtpReplayGuard

FALLBACK_CLIENT_IP = '127.0.0.1'


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get('x-forwarded-for', '')
    if forwarded:
        # 'cliente, proxy1, proxy2' -> 'cliente'
        first_hop = forwarded.split(',')[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return FALLBACK_CLIENT_IP


# Função que extrai o primeiro idioma aceito pelo cliente (ou o padrão configurado)
def get_user_locale(accept_language: Annotated[str | None, Header()] = None) -> str:
    if accept_language:
        # Pega o primeiro idioma da lista (ex: 'zh-CN,en;q=0.9' -> 'zh-cn')
        locale_tag = accept_language.split(',')[0].split(';')[0].strip().lower()
        if locale_tag:
            # Converte para o formato de arquivo (ex: 'zh-cn' -> 'zh_cn')
            return locale_tag.replace('-', '_')
    return get_settings().DEFAULT_LOCALE


def get_request_translator(locale: Annotated[str, Depends(get_user_locale)]) -> Callable[..., str]:
    return get_translator(locale)


ClientIp = Annotated[str, Depends(get_client_ip)]
CurrentIdentity = Annotated[AdminIdentity | None, Depends(resolve_admin_identity)]
Translator = Annotated[Callable[..., str], Depends(get_request_translator)]


async def get_admin_service(
    session=Depends(get_session),
    redis_client=Depends(get_redis_client),
) -> AdminService:
    settings = get_settings()
    totp_verifier = TotpVerifier(valid_window=settings.TOTP_VALID_WINDOW, issuer_name=settings.TOTP_ISSUER_NAME)
    adapters = AdminAdapters(
        admins=AdminRepositoryImpl(session),
        roles=AdminRoleRepositoryImpl(session),
        permissions=PermissionRepositoryImpl(session),
        logs=AdminLogRepositoryImpl(session),
    )
    if redis_client is None:
        otp_guard = NullOtpReplayGuard()
    else:
        # Um código aceito fica marcado enquanto ainda puder ser aceito de novo.
        otp_guard = RedisOtpReplayGuard(
            redis_client,
            ttl_seconds=TotpVerifier.step_seconds * (2 * settings.TOTP_VALID_WINDOW + 1),
        )
    return AdminService(
        adapters=adapters,
        settings=settings,
        password_hasher=PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS),
        jwt_service=get_jwt_service(),
        totp_verifier=totp_verifier,
        otp_guard=otp_guard,
    )


AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
