# caminho: backoffice_app/interfaces/api/routers/auth.py
# Funções:
# - Endpoints de sessão do painel (login, refresh, info, menus, logout, troca de senha)

from __future__ import annotations

from fastapi import APIRouter, status

from backoffice_app.application.admins.dto import (
    AdminChangePasswordRequest,
    AdminInfoResponse,
    AdminMessageResponse,
    ApiResponse,
    LoginRequest,
    LoginResponse,
    MenusResponse,
    RefreshTokenResponse,
)
from backoffice_app.interfaces.api.dependencies import AdminServiceDep, ClientIp, CurrentIdentity, Translator

router = APIRouter(prefix='/api/admin', tags=['auth'])


@router.post(
    '/login',
    response_model=ApiResponse[LoginResponse],
    status_code=status.HTTP_200_OK,
    summary='Login do administrador',
    description="""Autentica `username`/`password` (e `code` quando a conta tem 2FA) e emite um token de sessão.

O token vale 24h e carrega `admin_id`, `username` e `site_id`. A resposta inclui também o endereço
auxiliar `socket`.

**Erros**:
- Credenciais inválidas (usuário inexistente ou senha errada) retornam a mesma mensagem.
- Conta desativada, código 2FA ausente ou inválido.
""",
)
async def login(
    payload: LoginRequest,
    service: AdminServiceDep,
    client_ip: ClientIp,
    _: Translator,
) -> ApiResponse[LoginResponse]:
    result = await service.login(payload, client_ip=client_ip)
    return ApiResponse(message=_('SUCCESS'), data=result)


@router.get(
    '/refresh-token',
    response_model=ApiResponse[RefreshTokenResponse],
    summary='Renovar token',
    description="""Emite um novo token para a sessão atual, após reconfirmar que a conta segue ativa.

O token anterior continua válido até expirar (não há revogação no servidor).
""",
)
async def refresh_token(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    client_ip: ClientIp,
    _: Translator,
) -> ApiResponse[RefreshTokenResponse]:
    result = await service.refresh_token(identity, client_ip=client_ip)
    return ApiResponse(message=_('SUCCESS'), data=result)


@router.get(
    '/info',
    response_model=ApiResponse[AdminInfoResponse],
    summary='Dados do administrador logado',
    description='Retorna papel, nome, avatar, apresentação e a árvore de menus do painel.',
)
async def info(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    _: Translator,
) -> ApiResponse[AdminInfoResponse]:
    result = await service.get_info(identity, translator=_)
    return ApiResponse(message=_('SUCCESS'), data=result)


@router.get(
    '/menus',
    response_model=ApiResponse[MenusResponse],
    summary='Árvore de menus',
)
async def menus(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    _: Translator,
) -> ApiResponse[MenusResponse]:
    result = await service.menus(identity)
    return ApiResponse(message=_('SUCCESS'), data=result)


@router.post(
    '/logout',
    response_model=ApiResponse[AdminMessageResponse],
    summary='Logout',
    description='Registra o logout no log de auditoria. O cliente deve descartar o token.',
)
async def logout(
    identity: CurrentIdentity,
    service: AdminServiceDep,
    client_ip: ClientIp,
    _: Translator,
) -> ApiResponse[AdminMessageResponse]:
    result = await service.logout(identity, client_ip=client_ip, translator=_)
    return ApiResponse(message=result.message, data=result)


@router.post(
    '/change-password',
    response_model=ApiResponse[AdminMessageResponse],
    summary='Trocar a própria senha',
    description="""Troca a senha do administrador logado.

Falhas de regra (senha antiga errada, nova senha igual à antiga, tamanho fora de 6 a 20)
retornam `success=false` com a mensagem correspondente.
""",
)
async def change_password(
    payload: AdminChangePasswordRequest,
    identity: CurrentIdentity,
    service: AdminServiceDep,
    client_ip: ClientIp,
    _: Translator,
) -> ApiResponse[AdminMessageResponse]:
    result = await service.change_password(identity, payload, client_ip=client_ip, translator=_)
    return ApiResponse(message=result.message, data=result)
