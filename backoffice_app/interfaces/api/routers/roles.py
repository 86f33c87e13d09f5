# caminho: backoffice_app/interfaces/api/routers/roles.py
# Funções:
# - Listagem de papéis de administrador

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from backoffice_app.application.admins.dto import ApiResponse, RoleListResponse
from backoffice_app.interfaces.api.dependencies import AdminServiceDep, CurrentIdentity, Translator

router = APIRouter(prefix='/api/roles', tags=['roles'])


@router.get(
    '/',
    response_model=ApiResponse[RoleListResponse],
    summary='Listar papéis',
    description='Lista os papéis do site informado (padrão: o site configurado em `SITE_ID`).',
)
async def list_roles(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    _: Translator,
    site_id: Optional[int] = Query(None, ge=1),
) -> ApiResponse[RoleListResponse]:
    result = await service.list_roles(identity, site_id=site_id)
    return ApiResponse(message=_('SUCCESS'), data=result)
