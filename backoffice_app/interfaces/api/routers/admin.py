# caminho: backoffice_app/interfaces/api/routers/admin.py
# Funções:
# - Gestão de administradores (criar, listar, editar, remover) e log de auditoria

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Path, Query, status

from backoffice_app.application.admins.dto import (
    AdminCreateInput,
    AdminCreateOutput,
    AdminListResponse,
    AdminLogListResponse,
    AdminUpdateInput,
    ApiResponse,
)
from backoffice_app.config import get_settings
from backoffice_app.config.constants import ADMIN_LOGS_PAGE_SIZE
from backoffice_app.interfaces.api.dependencies import AdminServiceDep, ClientIp, CurrentIdentity, Translator

router = APIRouter(prefix='/api/admin', tags=['admin'])


@router.post(
    '/admins',
    response_model=ApiResponse[AdminCreateOutput],
    status_code=status.HTTP_201_CREATED,
    summary='Criar administrador',
    description="""Cria um administrador no site configurado.

Com `switch_google2fa=true` um segredo TOTP é gerado e a URI de provisionamento é devolvida
uma única vez em `google2fa_uri`.
""",
)
async def create_admin(
    payload: AdminCreateInput,
    identity: CurrentIdentity,
    service: AdminServiceDep,
    client_ip: ClientIp,
    _: Translator,
) -> ApiResponse[AdminCreateOutput]:
    result = await service.create_admin(identity, payload, client_ip=client_ip)
    return ApiResponse(code=status.HTTP_201_CREATED, message=_('SUCCESS'), data=result)


@router.get(
    '/admins',
    response_model=ApiResponse[AdminListResponse],
    summary='Listar administradores',
    description="""Lista administradores paginados, do mais recente para o mais antigo.

Filtros opcionais: `username` (busca parcial) e `status` (0 desativado, 1 ativo).
""",
)
async def list_admins(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    _: Translator,
    page: int = Query(1, ge=1),
    size: int = Query(get_settings().PAGINATION_LIMIT, ge=1, le=get_settings().PAGINATION_MAX_LIMIT),
    username: Optional[str] = Query(None, max_length=50),
    admin_status: Optional[int] = Query(None, alias='status', ge=0, le=1),
) -> ApiResponse[AdminListResponse]:
    result = await service.list_admins(identity, page=page, size=size, username=username, status=admin_status)
    return ApiResponse(message=_('SUCCESS'), data=result)


@router.put(
    '/admins/{admin_id}',
    response_model=ApiResponse[None],
    summary='Editar administrador',
    description='Atualiza apenas os campos informados (senha, apelido, papel, status).',
)
async def update_admin(
    payload: AdminUpdateInput,
    identity: CurrentIdentity,
    service: AdminServiceDep,
    client_ip: ClientIp,
    _: Translator,
    admin_id: int = Path(ge=1),
) -> ApiResponse[None]:
    await service.update_admin(identity, admin_id, payload, client_ip=client_ip)
    return ApiResponse(message=_('SUCCESS'))


@router.delete(
    '/admins/{admin_id}',
    response_model=ApiResponse[None],
    summary='Remover administrador',
    description='Remoção lógica (soft delete). Um administrador não pode remover a si mesmo.',
)
async def delete_admin(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    client_ip: ClientIp,
    _: Translator,
    admin_id: int = Path(ge=1),
) -> ApiResponse[None]:
    await service.delete_admin(identity, admin_id, client_ip=client_ip)
    return ApiResponse(message=_('SUCCESS'))


@router.get(
    '/logs',
    response_model=ApiResponse[AdminLogListResponse],
    summary='Log de auditoria',
    description="""Lista o log de ações dos administradores, do mais recente para o mais antigo.

Filtros opcionais: `username` e intervalo `start`/`end` (data e hora).
""",
)
async def list_admin_logs(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    _: Translator,
    page: int = Query(1, ge=1),
    size: int = Query(ADMIN_LOGS_PAGE_SIZE, ge=1, le=get_settings().PAGINATION_MAX_LIMIT),
    username: Optional[str] = Query(None, max_length=50),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
) -> ApiResponse[AdminLogListResponse]:
    result = await service.list_admin_logs(identity, page=page, size=size, username=username, start=start, end=end)
    return ApiResponse(message=_('SUCCESS'), data=result)
