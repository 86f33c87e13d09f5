# caminho: backoffice_app/shared/otp_guard.py
# Funções:
# - OtpReplayGuard: impede o reuso de um código 2FA já aceito
# - RedisOtpReplayGuard: marca códigos usados no Redis (SET NX + TTL)
# - NullOtpReplayGuard: implementação no-op para cenários sem Redis

from __future__ import annotations

from typing import Protocol

import redis.asyncio as redis


class OtpReplayGuard(Protocol):
    async def consume(self, admin_id: int, code: str) -> bool: ...


class RedisOtpReplayGuard:
    def __init__(self, client: redis.Redis, ttl_seconds: int, *, prefix: str = 'admin:2fa:used') -> None:
        self._client = client
        self._ttl = max(1, int(ttl_seconds))
        self._prefix = prefix

    async def consume(self, admin_id: int, code: str) -> bool:
        """Retorna False se o código já foi usado dentro da janela de validade."""
        added = await self._client.set(self._key(admin_id, code), '1', nx=True, ex=self._ttl)
        return bool(added)

    def _key(self, admin_id: int, code: str) -> str:
        return f'{self._prefix}:{admin_id}:{code.strip()}'


class NullOtpReplayGuard:
    async def consume(self, admin_id: int, code: str) -> bool:
        return True
