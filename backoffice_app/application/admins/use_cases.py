# caminho: backoffice_app/application/admins/use_cases.py
# Funções:
# - Casos de uso de sessão: login, refresh do token, informações/menus, logout, troca de senha
# - Casos de uso de gestão: criar, listar, editar, remover (soft delete) administradores,
#   listar log de auditoria e papéis

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from http import HTTPStatus
from typing import Any, Awaitable, Callable, NoReturn, Optional, TypeVar

from fastapi import HTTPException

from backoffice_app.application.admins.dto import (
    AdminChangePasswordRequest,
    AdminCreateInput,
    AdminCreateOutput,
    AdminInfoResponse,
    AdminListResponse,
    AdminLogListResponse,
    AdminLogOutput,
    AdminMessageResponse,
    AdminOutput,
    AdminUpdateInput,
    LoginRequest,
    LoginResponse,
    MenuOutput,
    MenusResponse,
    RefreshTokenResponse,
    RoleListResponse,
    RoleOutput,
    format_datetime,
)
from backoffice_app.config.constants import (
    ADMIN_LOGS_PAGE_SIZE,
    PASSWORD_BYTES_MAX,
    PASSWORD_LENGTH_MAX,
    PASSWORD_LENGTH_MIN,
)
from backoffice_app.config.settings import Settings
from backoffice_app.domain.admins.entities import Admin, AdminRole
from backoffice_app.domain.admins.repositories import (
    AdminLogRepository,
    AdminRepository,
    AdminRoleRepository,
    PermissionRepository,
)
from backoffice_app.domain.permissions.tree import build_menu_tree, count_nodes
from backoffice_app.infrastructure.db.utils import utcnow
from backoffice_app.infrastructure.security.jwt import JWTService, TokenError
from backoffice_app.infrastructure.security.passwords import PasswordHasher
from backoffice_app.infrastructure.security.totp import TotpVerifier
from backoffice_app.shared.audit import AuditLogger
from backoffice_app.shared.auth_dependencies import AdminIdentity
from backoffice_app.shared.i18n import get_default_translator
from backoffice_app.shared.logging import log_error, log_info, log_warning
from backoffice_app.shared.otp_guard import NullOtpReplayGuard, OtpReplayGuard

R = TypeVar('R')
Translator = Callable[..., str]


@dataclass(slots=True)
class AdminAdapters:
    admins: AdminRepository
    roles: AdminRoleRepository
    permissions: PermissionRepository
    logs: AdminLogRepository


class AdminService:
    def __init__(
        self,
        adapters: AdminAdapters,
        settings: Settings,
        password_hasher: PasswordHasher,
        jwt_service: JWTService,
        totp_verifier: TotpVerifier | None = None,
        otp_guard: OtpReplayGuard | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._admins = adapters.admins
        self._roles = adapters.roles
        self._permissions = adapters.permissions
        self._audit = AuditLogger(adapters.logs)
        self._logs = adapters.logs
        self._settings = settings
        self._hasher = password_hasher
        self._jwt = jwt_service
        self._totp = totp_verifier or TotpVerifier(valid_window=settings.TOTP_VALID_WINDOW)
        self._otp_guard = otp_guard or NullOtpReplayGuard()
        self._clock = clock

    # -- Sessão -----------------------------------------------------------------

    async def login(self, payload: LoginRequest, client_ip: str = '') -> LoginResponse:
        # A ordem das verificações define qual erro o cliente vê; não reordenar.
        site_id = self._settings.SITE_ID
        username = payload.username
        admin = await self._collaborator(
            self._admins.get_by_username_and_site(username, site_id),
            'ADMIN_LOOKUP_FAILED',
            {'username': username, 'site_id': site_id},
        )

        if admin is None:
            log_warning('ADMIN_LOGIN_UNKNOWN_USER', {'username': username, 'site_id': site_id, 'ip': client_ip})
            raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail={'code': 'ADMIN_INVALID_CREDENTIALS'})

        if not admin.is_enabled:
            log_warning('ADMIN_LOGIN_DISABLED', {'username': username, 'status': admin.status, 'ip': client_ip})
            raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail={'code': 'ADMIN_ACCOUNT_DISABLED'})

        if not self._hasher.verify(admin.password_hash, payload.password):
            log_warning('ADMIN_LOGIN_BAD_PASSWORD', {'username': username, 'ip': client_ip})
            raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail={'code': 'ADMIN_INVALID_CREDENTIALS'})

        if admin.switch_google2fa:
            await self._verify_second_factor(admin, payload.code, client_ip)

        token = self._issue_token(admin)

        try:
            await self._admins.update_login_meta(admin.id, client_ip, self._clock())
        except Exception as exc:
            log_error('ADMIN_LOGIN_META_UPDATE_FAILED', {'admin_id': admin.id, 'error': str(exc)})
        await self._audit.record(admin, client_ip, 'login succeeded')

        log_info('ADMIN_LOGIN_SUCCEEDED', {'username': username, 'admin_id': admin.id, 'site_id': site_id})
        return LoginResponse(token=token, socket=self._settings.SOCKET_ADDRESS)

    async def refresh_token(self, identity: AdminIdentity | None, client_ip: str = '') -> RefreshTokenResponse:
        # O token anterior segue válido até expirar: não há revogação no servidor.
        admin = await self._require_live_admin(identity)
        token = self._issue_token(admin)

        try:
            await self._admins.touch(admin.id)
        except Exception as exc:
            log_error('ADMIN_TOUCH_FAILED', {'admin_id': admin.id, 'error': str(exc)})
        await self._audit.record(admin, client_ip, 'token refreshed')

        log_info('ADMIN_TOKEN_REFRESHED', {'admin_id': admin.id, 'username': admin.username})
        return RefreshTokenResponse(token=token)

    async def get_info(self, identity: AdminIdentity | None, translator: Translator | None = None) -> AdminInfoResponse:
        _ = translator or get_default_translator()
        admin = await self._require_live_admin(identity)

        role: AdminRole | None = None
        try:
            role = await self._roles.get_by_id(admin.admin_role_id)
        except Exception as exc:
            # Papel ilegível não impede a resposta: cai no rótulo padrão.
            log_error('ADMIN_ROLE_LOOKUP_FAILED', {'admin_id': admin.id, 'role_id': admin.admin_role_id, 'error': str(exc)})
        roles = [role.name] if role is not None else [_('ROLE_UNKNOWN')]

        menus = await self._build_menus()
        log_info('ADMIN_INFO_LOADED', {'admin_id': admin.id, 'menus': len(menus)})
        return AdminInfoResponse(
            roles=roles,
            name=admin.nickname,
            avatar=self._settings.DEFAULT_AVATAR_URL,
            introduction=_('ADMIN_INTRODUCTION', username=admin.username),
            menus=menus,
        )

    async def menus(self, identity: AdminIdentity | None) -> MenusResponse:
        admin = await self._require_live_admin(identity)
        menus = await self._build_menus()
        log_info('ADMIN_MENUS_LOADED', {'admin_id': admin.id, 'menus': len(menus)})
        return MenusResponse(menus=menus)

    async def logout(
        self,
        identity: AdminIdentity | None,
        client_ip: str = '',
        translator: Translator | None = None,
    ) -> AdminMessageResponse:
        _ = translator or get_default_translator()
        if identity is None:
            log_warning('ADMIN_LOGOUT_WITHOUT_SESSION', {'ip': client_ip})
            return AdminMessageResponse(success=False, message=_('ADMIN_NOT_LOGGED_IN'))

        # Tokens são stateless: o cliente descarta o token, aqui só auditamos.
        admin = None
        try:
            admin = await self._admins.get_by_id(identity.admin_id)
        except Exception as exc:
            log_error('ADMIN_LOOKUP_FAILED', {'admin_id': identity.admin_id, 'error': str(exc)})

        if admin is not None and admin.site_id == identity.site_id:
            await self._audit.record(admin, client_ip, 'logged out')
            log_info('ADMIN_LOGGED_OUT', {'admin_id': admin.id, 'username': admin.username, 'ip': client_ip})
        return AdminMessageResponse(success=True, message=_('ADMIN_LOGOUT_SUCCESS'))

    async def change_password(
        self,
        identity: AdminIdentity | None,
        payload: AdminChangePasswordRequest,
        client_ip: str = '',
        translator: Translator | None = None,
    ) -> AdminMessageResponse:
        _ = translator or get_default_translator()

        def failure(key: str, **kwargs: Any) -> AdminMessageResponse:
            return AdminMessageResponse(success=False, message=_(key, **kwargs))

        old_password = payload.old_password
        new_password = payload.new_password
        if not old_password:
            return failure('PASSWORD_OLD_REQUIRED')
        if not new_password:
            return failure('PASSWORD_NEW_REQUIRED')
        if not PASSWORD_LENGTH_MIN <= len(new_password) <= PASSWORD_LENGTH_MAX:
            return failure('PASSWORD_LENGTH_INVALID', min=PASSWORD_LENGTH_MIN, max=PASSWORD_LENGTH_MAX)
        if len(new_password.encode('utf-8')) > PASSWORD_BYTES_MAX:
            return failure('PASSWORD_TOO_LONG', max=PASSWORD_BYTES_MAX)
        if old_password == new_password:
            return failure('PASSWORD_UNCHANGED')

        if identity is None:
            log_warning('ADMIN_PASSWORD_WITHOUT_SESSION', {'ip': client_ip})
            return failure('ADMIN_NOT_LOGGED_IN')

        try:
            admin = await self._admins.get_by_id(identity.admin_id)
        except Exception as exc:
            log_error('ADMIN_LOOKUP_FAILED', {'admin_id': identity.admin_id, 'error': str(exc)})
            return failure('SYSTEM_ERROR')

        if admin is None or admin.site_id != identity.site_id:
            log_warning('ADMIN_NOT_LOGGED_IN', {'reason': 'admin_not_found', 'session_admin_id': identity.admin_id})
            return failure('ADMIN_NOT_LOGGED_IN')
        if not admin.is_enabled:
            log_warning('ADMIN_PASSWORD_DISABLED', {'admin_id': admin.id})
            return failure('ADMIN_ACCOUNT_DISABLED')

        if not self._hasher.verify(admin.password_hash, old_password):
            log_warning('ADMIN_PASSWORD_OLD_MISMATCH', {'admin_id': admin.id, 'ip': client_ip})
            return failure('PASSWORD_OLD_INVALID')

        try:
            await self._admins.update_password(admin.id, self._hasher.hash(new_password))
        except Exception as exc:
            log_error('ADMIN_PASSWORD_UPDATE_FAILED', {'admin_id': admin.id, 'error': str(exc)})
            return failure('PASSWORD_CHANGE_FAILED')

        await self._audit.record(admin, client_ip, 'password changed')
        log_info('ADMIN_PASSWORD_CHANGED', {'admin_id': admin.id, 'username': admin.username})
        return AdminMessageResponse(success=True, message=_('PASSWORD_CHANGED'))

    # -- Gestão de administradores --------------------------------------------------

    async def create_admin(
        self,
        identity: AdminIdentity | None,
        payload: AdminCreateInput,
        client_ip: str = '',
    ) -> AdminCreateOutput:
        acting_admin = await self._require_live_admin(identity)
        site_id = self._settings.SITE_ID

        existing = await self._collaborator(
            self._admins.get_by_username_and_site(payload.username, site_id),
            'ADMIN_LOOKUP_FAILED',
            {'username': payload.username, 'site_id': site_id},
        )
        if existing is not None:
            log_warning('ADMIN_ALREADY_EXISTS', {'username': payload.username, 'site_id': site_id})
            raise HTTPException(status_code=HTTPStatus.CONFLICT, detail={'code': 'ADMIN_USERNAME_EXISTS'})

        google2fa_secret = self._totp.new_secret() if payload.switch_google2fa else None
        admin = Admin(
            site_id=site_id,
            username=payload.username,
            nickname=payload.nickname,
            password_hash=self._hash_password(payload.password),
            admin_role_id=payload.role,
            status=payload.status,
            switch_google2fa=payload.switch_google2fa,
            google2fa_secret=google2fa_secret,
        )
        created = await self._collaborator(
            self._admins.add(admin),
            'ADMIN_CREATE_FAILED',
            {'username': payload.username},
        )

        await self._audit.record(acting_admin, client_ip, f'create admin: {created.username}')
        log_info('ADMIN_CREATED', {'created_admin_id': created.id, 'acting_admin_id': acting_admin.id})
        return AdminCreateOutput(
            id=created.id,
            username=created.username,
            google2fa_uri=self._totp.provisioning_uri(google2fa_secret, created.username) if google2fa_secret else None,
        )

    async def list_admins(
        self,
        identity: AdminIdentity | None,
        page: int = 1,
        size: int | None = None,
        username: str | None = None,
        status: int | None = None,
    ) -> AdminListResponse:
        await self._require_live_admin(identity)
        page = max(1, page)
        size = size if size and size > 0 else self._settings.PAGINATION_LIMIT

        admins, total = await self._collaborator(
            self._admins.list(self._settings.SITE_ID, (page - 1) * size, size, username=username, status=status),
            'ADMIN_LIST_FAILED',
            {'page': page, 'size': size},
        )

        # Uma única consulta de papéis para a página inteira.
        role_names: dict[int, str] = {}
        role_ids = sorted({admin.admin_role_id for admin in admins if admin.admin_role_id > 0})
        if role_ids:
            try:
                role_names = {role.id: role.name for role in await self._roles.get_many(role_ids)}
            except Exception as exc:
                log_error('ADMIN_ROLE_LOOKUP_FAILED', {'role_ids': role_ids, 'error': str(exc)})

        items = [
            AdminOutput(
                id=admin.id,
                username=admin.username,
                nickname=admin.nickname,
                role=admin.admin_role_id,
                role_name=role_names.get(admin.admin_role_id, ''),
                status=admin.status,
                last_login_ip=admin.last_login_ip or '',
                last_login_time=format_datetime(admin.last_login_time),
                created_at=format_datetime(admin.created_at),
            )
            for admin in admins
        ]
        # TODO: calcular google2fa_access a partir da permissão 'bind-google2fa' do papel.
        return AdminListResponse(items=items, total=total, page=page, size=size)

    async def update_admin(
        self,
        identity: AdminIdentity | None,
        admin_id: int,
        payload: AdminUpdateInput,
        client_ip: str = '',
    ) -> None:
        acting_admin = await self._require_live_admin(identity)
        target = await self._require_site_admin(admin_id)

        values: dict[str, Any] = {}
        if payload.password:
            values['password_hash'] = self._hash_password(payload.password)
        if payload.nickname:
            values['nickname'] = payload.nickname
        if payload.role is not None:
            values['admin_role_id'] = payload.role
        if payload.status is not None:
            values['status'] = payload.status

        await self._collaborator(
            self._admins.update(target.id, values),
            'ADMIN_UPDATE_FAILED',
            {'target_admin_id': target.id, 'fields': sorted(values)},
        )
        await self._audit.record(acting_admin, client_ip, f'edit admin: {target.username}')
        log_info('ADMIN_UPDATED', {'target_admin_id': target.id, 'fields': sorted(values)})

    async def delete_admin(self, identity: AdminIdentity | None, admin_id: int, client_ip: str = '') -> None:
        acting_admin = await self._require_live_admin(identity)
        if admin_id == acting_admin.id:
            log_warning('ADMIN_SELF_DELETE_ATTEMPT', {'target_admin_id': admin_id})
            raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail={'code': 'ADMIN_SELF_DELETE_FORBIDDEN'})

        target = await self._require_site_admin(admin_id)
        await self._collaborator(
            self._admins.soft_delete(target.id),
            'ADMIN_DELETE_FAILED',
            {'target_admin_id': target.id},
        )
        await self._audit.record(acting_admin, client_ip, f'delete admin: {target.username}')
        log_info('ADMIN_DELETED', {'target_admin_id': target.id, 'username': target.username})

    async def list_admin_logs(
        self,
        identity: AdminIdentity | None,
        page: int = 1,
        size: int | None = None,
        username: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> AdminLogListResponse:
        await self._require_live_admin(identity)
        page = max(1, page)
        size = size if size and size > 0 else ADMIN_LOGS_PAGE_SIZE

        entries, total = await self._collaborator(
            self._logs.list(self._settings.SITE_ID, (page - 1) * size, size, username=username, start=start, end=end),
            'ADMIN_LOGS_LIST_FAILED',
            {'page': page, 'size': size},
        )
        items = [
            AdminLogOutput(
                username=entry.admin_username,
                ip=entry.ip,
                remark=entry.remark,
                created_at=format_datetime(entry.created_at),
            )
            for entry in entries
        ]
        return AdminLogListResponse(items=items, count=total)

    async def list_roles(self, identity: AdminIdentity | None, site_id: int | None = None) -> RoleListResponse:
        await self._require_live_admin(identity)
        site = site_id if site_id and site_id > 0 else self._settings.SITE_ID
        roles = await self._collaborator(self._roles.list_by_site(site), 'ADMIN_ROLES_LIST_FAILED', {'site_id': site})
        return RoleListResponse(items=[RoleOutput(id=role.id, name=role.name, status=role.status) for role in roles])

    # -- Helpers ----------------------------------------------------------------

    async def _collaborator(self, call: Awaitable[R], event: str, context: dict[str, Any]) -> R:
        """Executa uma chamada a colaborador; falhas são logadas e viram SYSTEM_ERROR."""
        try:
            return await call
        except HTTPException:
            raise
        except Exception as exc:
            log_error(event, {**context, 'error': repr(exc)})
            raise HTTPException(status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail={'code': 'SYSTEM_ERROR'}) from exc

    async def _require_live_admin(self, identity: AdminIdentity | None) -> Admin:
        if identity is None:
            self._not_logged_in('missing_identity', None)

        admin = await self._collaborator(
            self._admins.get_by_id(identity.admin_id),
            'ADMIN_LOOKUP_FAILED',
            {'admin_id': identity.admin_id},
        )
        if admin is None or admin.site_id != identity.site_id:
            self._not_logged_in('admin_not_found', identity.admin_id)

        # Token válido é necessário, mas não suficiente: a conta precisa seguir ativa.
        if not admin.is_enabled:
            log_warning('ADMIN_SESSION_DISABLED', {'admin_id': admin.id, 'status': admin.status})
            raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail={'code': 'ADMIN_ACCOUNT_DISABLED'})
        return admin

    async def _require_site_admin(self, admin_id: int) -> Admin:
        target = await self._collaborator(
            self._admins.get_by_id(admin_id),
            'ADMIN_LOOKUP_FAILED',
            {'target_admin_id': admin_id},
        )
        if target is None or target.site_id != self._settings.SITE_ID:
            log_warning('ADMIN_NOT_FOUND', {'target_admin_id': admin_id})
            raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail={'code': 'ADMIN_NOT_FOUND'})
        return target

    def _hash_password(self, plaintext: str) -> str:
        try:
            return self._hasher.hash(plaintext)
        except ValueError as exc:
            log_warning('ADMIN_PASSWORD_REJECTED', {'error': str(exc)})
            raise HTTPException(
                status_code=HTTPStatus.BAD_REQUEST,
                detail={'code': 'PASSWORD_TOO_LONG', 'max': PASSWORD_BYTES_MAX},
            ) from exc

    @staticmethod
    def _not_logged_in(reason: str, admin_id: Optional[int]) -> NoReturn:
        log_warning('ADMIN_NOT_LOGGED_IN', {'reason': reason, 'session_admin_id': admin_id})
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail={'code': 'ADMIN_NOT_LOGGED_IN'})

    async def _verify_second_factor(self, admin: Admin, code: str | None, client_ip: str) -> None:
        code = (code or '').strip()
        if not code:
            log_warning('ADMIN_LOGIN_2FA_MISSING', {'admin_id': admin.id, 'ip': client_ip})
            raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail={'code': 'ADMIN_VERIFICATION_CODE_REQUIRED'})

        if not self._totp.verify(admin.google2fa_secret, code):
            log_warning('ADMIN_LOGIN_2FA_INVALID', {'admin_id': admin.id, 'ip': client_ip})
            raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail={'code': 'ADMIN_VERIFICATION_CODE_INVALID'})

        fresh = await self._collaborator(
            self._otp_guard.consume(admin.id, code),
            'ADMIN_2FA_GUARD_FAILED',
            {'admin_id': admin.id},
        )
        if not fresh:
            log_warning('ADMIN_LOGIN_2FA_REPLAY', {'admin_id': admin.id, 'ip': client_ip})
            raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail={'code': 'ADMIN_VERIFICATION_CODE_INVALID'})

    def _issue_token(self, admin: Admin) -> str:
        try:
            return self._jwt.issue(admin)
        except TokenError as exc:
            log_error('ADMIN_TOKEN_ISSUE_FAILED', {'admin_id': admin.id, 'reason': exc.reason, 'error': str(exc)})
            raise HTTPException(status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail={'code': 'SYSTEM_ERROR'}) from exc

    async def _build_menus(self) -> list[MenuOutput]:
        permissions = await self._collaborator(self._permissions.list_enabled(), 'ADMIN_PERMISSIONS_LIST_FAILED', {})
        forest = build_menu_tree(permissions)
        log_info(
            'ADMIN_MENU_TREE_BUILT',
            {'permissions': len(permissions), 'roots': len(forest), 'placed': count_nodes(forest)},
        )
        return [MenuOutput.model_validate(node) for node in forest]
