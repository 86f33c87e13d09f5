# caminho: backoffice_app/infrastructure/security/jwt.py
# Funções:
# - JWTService: emite e valida o token de sessão administrativa (24h, sem estado no servidor)
# - SessionClaims: claims decodificadas do token
# - TokenError e subclasses: falhas distintas (malformado, expirado, assinatura, configuração)

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from jwt import (
    DecodeError,
    ExpiredSignatureError,
    InvalidSignatureError,
    InvalidTokenError,
    decode,
    encode,
)
from pydantic import SecretStr

from backoffice_app.config.constants import SESSION_SUBJECT_KIND, SESSION_TOKEN_TTL_SECONDS
from backoffice_app.domain.admins.entities import Admin

_REQUIRED_CLAIMS = ['exp', 'iat', 'admin_id', 'username', 'site_id', 'kind']


class TokenError(Exception):
    """Base das falhas de token. O usuário final só vê uma mensagem genérica."""

    reason = 'TOKEN_INVALID'


class TokenConfigurationError(TokenError):
    reason = 'TOKEN_SECRET_NOT_CONFIGURED'


class TokenMalformedError(TokenError):
    reason = 'TOKEN_MALFORMED'


class TokenExpiredError(TokenError):
    reason = 'TOKEN_EXPIRED'


class TokenSignatureError(TokenError):
    reason = 'TOKEN_SIGNATURE_MISMATCH'


@dataclass(slots=True, frozen=True)
class SessionClaims:
    admin_id: int
    username: str
    site_id: int
    kind: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JWTService:
    def __init__(
        self,
        secret_key: SecretStr | str,
        algorithm: str = 'HS256',
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if isinstance(secret_key, SecretStr):
            secret_key = secret_key.get_secret_value()
        self._secret = (secret_key or '').strip()
        self._algorithm = algorithm
        self._clock = clock

    def issue(self, admin: Admin) -> str:
        if not self._secret:
            raise TokenConfigurationError('JWT secret not configured')

        issued_at = int(self._clock().timestamp())
        payload = {
            # user_id = 0 identifica sessões do painel para o gateway
            'user_id': 0,
            'admin_id': admin.id,
            'username': admin.username,
            'site_id': admin.site_id,
            'kind': SESSION_SUBJECT_KIND,
            'iat': issued_at,
            'exp': issued_at + SESSION_TOKEN_TTL_SECONDS,
        }
        return encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> SessionClaims:
        if not self._secret:
            raise TokenConfigurationError('JWT secret not configured')
        if not token:
            raise TokenMalformedError('empty token')

        try:
            payload = decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={'require': _REQUIRED_CLAIMS},
                leeway=0,
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError(str(exc)) from exc
        except InvalidSignatureError as exc:
            raise TokenSignatureError(str(exc)) from exc
        except (InvalidTokenError, DecodeError) as exc:
            raise TokenMalformedError(str(exc)) from exc

        # O decode só confere exp contra o relógio real; o relógio injetado vale aqui.
        if int(payload['exp']) <= int(self._clock().timestamp()):
            raise TokenExpiredError('Signature has expired')

        if payload.get('kind') != SESSION_SUBJECT_KIND:
            raise TokenMalformedError('not an administrator session')

        try:
            admin_id = int(payload['admin_id'])
            site_id = int(payload['site_id'])
        except (TypeError, ValueError) as exc:
            raise TokenMalformedError('invalid identity claims') from exc

        return SessionClaims(
            admin_id=admin_id,
            username=str(payload['username']),
            site_id=site_id,
            kind=payload['kind'],
            issued_at=datetime.fromtimestamp(int(payload['iat']), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload['exp']), tz=timezone.utc),
        )
