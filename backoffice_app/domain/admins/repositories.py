# caminho: backoffice_app/domain/admins/repositories.py
# Funções:
# - Protocolos dos repositórios consumidos pelos casos de uso (portas de saída)

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from backoffice_app.domain.admins.entities import Admin, AdminLogEntry, AdminRole, Permission


class AdminRepository(Protocol):
    async def get_by_username_and_site(self, username: str, site_id: int) -> Optional[Admin]: ...
    async def get_by_id(self, admin_id: int) -> Optional[Admin]: ...
    async def update_login_meta(self, admin_id: int, ip: str, logged_at: datetime) -> None: ...
    async def touch(self, admin_id: int) -> None: ...
    async def update_password(self, admin_id: int, password_hash: str) -> None: ...
    async def add(self, admin: Admin) -> Admin: ...
    async def list(
        self,
        site_id: int,
        offset: int,
        limit: int,
        username: str | None = None,
        status: int | None = None,
    ) -> tuple[Sequence[Admin], int]: ...
    async def update(self, admin_id: int, values: dict[str, Any]) -> None: ...
    async def soft_delete(self, admin_id: int) -> None: ...


class AdminLogRepository(Protocol):
    async def add(self, entry: AdminLogEntry) -> None: ...
    async def list(
        self,
        site_id: int,
        offset: int,
        limit: int,
        username: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> tuple[Sequence[AdminLogEntry], int]: ...


class PermissionRepository(Protocol):
    async def list_enabled(self) -> Sequence[Permission]: ...


class AdminRoleRepository(Protocol):
    async def get_by_id(self, role_id: int) -> Optional[AdminRole]: ...
    async def get_many(self, role_ids: Sequence[int]) -> Sequence[AdminRole]: ...
    async def list_by_site(self, site_id: int) -> Sequence[AdminRole]: ...
