# caminho: backoffice_app/infrastructure/db/models.py
# Funções:
# - Declarar modelos SQLAlchemy (AdminModel, AdminRoleModel, AdminPermissionModel, AdminLogModel)

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    SmallInteger,
    String,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_app.domain.admins.enums import ADMIN_STATUS_CHOICES, PERMISSION_TYPE_CHOICES
from backoffice_app.infrastructure.db.base import Base


class AdminModel(Base):
    __tablename__ = 'admins'

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    nickname: Mapped[str] = mapped_column(String(50), nullable=False, default='')
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_role_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    status: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1, server_default=text('1'))

    switch_google2fa: Mapped[bool] = mapped_column(Boolean, server_default=text('false'), default=False, nullable=False)
    google2fa_secret: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    last_login_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    last_login_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        # Unicidade só entre contas vivas: um username removido pode ser recriado.
        Index(
            'ux_admin_site_username_live',
            'site_id',
            'username',
            unique=True,
            postgresql_where=text('deleted_at IS NULL'),
        ),
        CheckConstraint(f'status IN {ADMIN_STATUS_CHOICES}', name='ck_admin_status'),
    )


class AdminRoleModel(Base):
    __tablename__ = 'admin_roles'

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1, server_default=text('1'))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class AdminPermissionModel(Base):
    __tablename__ = 'admin_permissions'

    id: Mapped[int] = mapped_column(primary_key=True)
    parent_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1)
    backend_url: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    frontend_url: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default='')
    sort: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1, server_default=text('1'))

    __table_args__ = (
        Index('ix_admin_permissions_status_sort', 'status', 'sort', 'id'),
        CheckConstraint(f'type IN {PERMISSION_TYPE_CHOICES}', name='ck_admin_permission_type'),
    )


class AdminLogModel(Base):
    __tablename__ = 'admin_logs'

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    admin_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    admin_username: Mapped[str] = mapped_column(String(50), nullable=False)
    ip: Mapped[str] = mapped_column(String(64), nullable=False, default='')
    remark: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (Index('ix_admin_logs_site_created', 'site_id', 'created_at'),)
