# caminho: backoffice_app/infrastructure/repositories/admin_repository.py
# Funções:
# - AdminRepositoryImpl: implementação SQLAlchemy do protocolo AdminRepository
# - AdminRoleRepositoryImpl: leitura de papéis
# - AdminLogRepositoryImpl: gravação/listagem do log de auditoria
# - PermissionRepositoryImpl: permissões habilitadas ordenadas por (sort, id)

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_app.domain.admins.entities import Admin, AdminLogEntry, AdminRole, Permission
from backoffice_app.domain.admins.enums import PERMISSION_STATUS_ENABLED
from backoffice_app.domain.admins.repositories import (
    AdminLogRepository,
    AdminRepository,
    AdminRoleRepository,
    PermissionRepository,
)
from backoffice_app.infrastructure.db.models import (
    AdminLogModel,
    AdminModel,
    AdminPermissionModel,
    AdminRoleModel,
)
from backoffice_app.infrastructure.db.utils import commit_or_rollback, utcnow

# Colunas que o caso de uso de edição pode alterar (nome de domínio -> coluna)
_UPDATABLE_ADMIN_FIELDS = {
    'nickname': 'nickname',
    'password_hash': 'password',
    'admin_role_id': 'admin_role_id',
    'status': 'status',
}


def _to_domain_admin(model: AdminModel) -> Admin:
    return Admin(
        id=model.id,
        site_id=model.site_id,
        username=model.username,
        nickname=model.nickname,
        password_hash=model.password,
        admin_role_id=model.admin_role_id,
        status=model.status,
        switch_google2fa=model.switch_google2fa,
        google2fa_secret=model.google2fa_secret,
        last_login_ip=model.last_login_ip,
        last_login_time=model.last_login_time,
        deleted_at=model.deleted_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_domain_log(model: AdminLogModel) -> AdminLogEntry:
    return AdminLogEntry(
        id=model.id,
        site_id=model.site_id,
        admin_id=model.admin_id,
        admin_username=model.admin_username,
        ip=model.ip,
        remark=model.remark,
        created_at=model.created_at,
    )


def _username_filter(username: str):
    # '%' e '_' digitados pelo usuário são literais
    return AdminModel.username.contains(username, autoescape=True)


class AdminRepositoryImpl(AdminRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _live(self):
        # Registros com soft delete ficam invisíveis para todas as consultas.
        return select(AdminModel).where(AdminModel.deleted_at.is_(None))

    async def get_by_username_and_site(self, username: str, site_id: int) -> Optional[Admin]:
        stmt = self._live().where(AdminModel.username == username, AdminModel.site_id == site_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_domain_admin(model) if model else None

    async def get_by_id(self, admin_id: int) -> Optional[Admin]:
        stmt = self._live().where(AdminModel.id == admin_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_domain_admin(model) if model else None

    async def update_login_meta(self, admin_id: int, ip: str, logged_at: datetime) -> None:
        stmt = (
            update(AdminModel)
            .where(AdminModel.id == admin_id)
            .values(last_login_ip=ip[:64], last_login_time=logged_at)
        )
        await commit_or_rollback(self._session, stmt)

    async def touch(self, admin_id: int) -> None:
        stmt = update(AdminModel).where(AdminModel.id == admin_id).values(updated_at=utcnow())
        await commit_or_rollback(self._session, stmt)

    async def update_password(self, admin_id: int, password_hash: str) -> None:
        await self.update(admin_id, {'password_hash': password_hash})

    async def add(self, admin: Admin) -> Admin:
        model = AdminModel(
            site_id=admin.site_id,
            username=admin.username,
            nickname=admin.nickname,
            password=admin.password_hash,
            admin_role_id=admin.admin_role_id,
            status=admin.status,
            switch_google2fa=admin.switch_google2fa,
            google2fa_secret=admin.google2fa_secret,
        )
        self._session.add(model)
        await commit_or_rollback(self._session)
        await self._session.refresh(model)
        return _to_domain_admin(model)

    async def list(
        self,
        site_id: int,
        offset: int,
        limit: int,
        username: str | None = None,
        status: int | None = None,
    ) -> tuple[Sequence[Admin], int]:
        conditions = [AdminModel.deleted_at.is_(None), AdminModel.site_id == site_id]
        if username:
            conditions.append(_username_filter(username))
        if status is not None:
            conditions.append(AdminModel.status == status)

        count_stmt = select(func.count()).select_from(AdminModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = select(AdminModel).where(*conditions).order_by(AdminModel.id.desc()).offset(offset).limit(limit)
        result = await self._session.execute(stmt)
        return [_to_domain_admin(model) for model in result.scalars().all()], int(total)

    async def update(self, admin_id: int, values: dict[str, Any]) -> None:
        columns = {_UPDATABLE_ADMIN_FIELDS[key]: value for key, value in values.items() if key in _UPDATABLE_ADMIN_FIELDS}
        columns['updated_at'] = utcnow()
        stmt = update(AdminModel).where(AdminModel.id == admin_id).values(**columns)
        await commit_or_rollback(self._session, stmt)

    async def soft_delete(self, admin_id: int) -> None:
        now = utcnow()
        stmt = update(AdminModel).where(AdminModel.id == admin_id).values(deleted_at=now, updated_at=now)
        await commit_or_rollback(self._session, stmt)


class AdminRoleRepositoryImpl(AdminRoleRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, role_id: int) -> Optional[AdminRole]:
        stmt = select(AdminRoleModel).where(AdminRoleModel.id == role_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return AdminRole(id=model.id, site_id=model.site_id, name=model.name, status=model.status)

    async def get_many(self, role_ids: Sequence[int]) -> Sequence[AdminRole]:
        if not role_ids:
            return []
        stmt = select(AdminRoleModel).where(AdminRoleModel.id.in_(list(role_ids)))
        result = await self._session.execute(stmt)
        return [
            AdminRole(id=model.id, site_id=model.site_id, name=model.name, status=model.status)
            for model in result.scalars().all()
        ]

    async def list_by_site(self, site_id: int) -> Sequence[AdminRole]:
        stmt = select(AdminRoleModel).where(AdminRoleModel.site_id == site_id).order_by(AdminRoleModel.id)
        result = await self._session.execute(stmt)
        return [
            AdminRole(id=model.id, site_id=model.site_id, name=model.name, status=model.status)
            for model in result.scalars().all()
        ]


class AdminLogRepositoryImpl(AdminLogRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, entry: AdminLogEntry) -> None:
        model = AdminLogModel(
            site_id=entry.site_id,
            admin_id=entry.admin_id,
            admin_username=entry.admin_username,
            ip=entry.ip[:64],
            remark=entry.remark[:255],
            created_at=entry.created_at or utcnow(),
        )
        self._session.add(model)
        await commit_or_rollback(self._session)

    async def list(
        self,
        site_id: int,
        offset: int,
        limit: int,
        username: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> tuple[Sequence[AdminLogEntry], int]:
        conditions = [AdminLogModel.site_id == site_id]
        if username:
            conditions.append(AdminLogModel.admin_username == username)
        if start is not None:
            conditions.append(AdminLogModel.created_at >= start)
        if end is not None:
            conditions.append(AdminLogModel.created_at <= end)

        count_stmt = select(func.count()).select_from(AdminLogModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(AdminLogModel)
            .where(*conditions)
            .order_by(AdminLogModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_domain_log(model) for model in result.scalars().all()], int(total)


class PermissionRepositoryImpl(PermissionRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_enabled(self) -> Sequence[Permission]:
        stmt = (
            select(AdminPermissionModel)
            .where(AdminPermissionModel.status == PERMISSION_STATUS_ENABLED)
            .order_by(AdminPermissionModel.sort.asc(), AdminPermissionModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [
            Permission(
                id=model.id,
                parent_id=model.parent_id,
                name=model.name,
                type=model.type,
                backend_url=model.backend_url,
                frontend_url=model.frontend_url,
                icon=model.icon,
                sort=model.sort,
                status=model.status,
            )
            for model in result.scalars().all()
        ]
