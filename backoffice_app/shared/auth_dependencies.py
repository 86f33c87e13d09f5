# caminho: backoffice_app/shared/auth_dependencies.py
# Funções:
# - AdminIdentity: identidade autenticada resolvida uma única vez por requisição
# - get_jwt_service(): instancia o JWTService com a configuração carregada
# - resolve_admin_identity(): valida o Bearer token e devolve a identidade (ou None)

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from backoffice_app.config import get_settings
from backoffice_app.config.constants import OAUTH2_SCHEME_TOKEN_URL
from backoffice_app.infrastructure.security.jwt import JWTService, TokenConfigurationError, TokenError
from backoffice_app.shared.logging import log_error, log_warning
from backoffice_app.shared.request_context import bind_admin_id

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=OAUTH2_SCHEME_TOKEN_URL,
    auto_error=False,  # ausência de token vira identidade None, tratada pelo caso de uso
)


@dataclass(slots=True, frozen=True)
class AdminIdentity:
    admin_id: int
    username: str
    site_id: int


def get_jwt_service() -> JWTService:
    settings = get_settings()
    return JWTService(settings.JWT_SECRET, settings.JWT_ALGORITHM)


async def resolve_admin_identity(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    jwt_service: JWTService = Depends(get_jwt_service),
) -> AdminIdentity | None:
    """Resolve o administrador autenticado na borda HTTP.

    Falhas de token (malformado, expirado, assinatura) são logadas com o motivo
    exato, mas viram apenas `None`: o usuário final recebe sempre a mesma
    mensagem genérica de sessão inválida.
    """
    if not token:
        return None

    try:
        claims = jwt_service.validate(token)
    except TokenConfigurationError as exc:
        log_error('ADMIN_TOKEN_SECRET_MISSING', {'error': str(exc)})
        return None
    except TokenError as exc:
        log_warning('ADMIN_TOKEN_REJECTED', {'reason': exc.reason, 'error': str(exc), 'path': request.url.path})
        return None

    identity = AdminIdentity(admin_id=claims.admin_id, username=claims.username, site_id=claims.site_id)
    bind_admin_id(identity.admin_id)
    return identity
