# caminho: backoffice_app/domain/admins/entities.py
# Funções:
# - Admin: entidade agregadora principal do contexto de Administradores
# - AdminRole: papel (cargo) atribuído ao Admin
# - AdminLogEntry: registro imutável de auditoria
# - Permission: nó da árvore de menus/permissões

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from backoffice_app.domain.admins.enums import (
    ADMIN_STATUS_ENABLED,
    PERMISSION_STATUS_ENABLED,
    PERMISSION_TYPE_MENU,
)


@dataclass(slots=True)
class Admin:
    site_id: int
    username: str
    nickname: str
    password_hash: str
    admin_role_id: int
    status: int
    switch_google2fa: bool = False
    google2fa_secret: Optional[str] = None
    last_login_ip: Optional[str] = None
    last_login_time: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def is_enabled(self) -> bool:
        # Desabilitado ou removido (soft delete) nunca autentica.
        return self.status == ADMIN_STATUS_ENABLED and self.deleted_at is None


@dataclass(slots=True)
class AdminRole:
    site_id: int
    name: str
    status: int = ADMIN_STATUS_ENABLED
    id: Optional[int] = None


@dataclass(slots=True, frozen=True)
class AdminLogEntry:
    site_id: int
    admin_id: int
    admin_username: str
    ip: str
    remark: str
    created_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(slots=True)
class Permission:
    id: int
    parent_id: int
    name: str
    type: int = PERMISSION_TYPE_MENU
    backend_url: str = ''
    frontend_url: str = ''
    icon: str = ''
    sort: int = 0
    status: int = PERMISSION_STATUS_ENABLED
