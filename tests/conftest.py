from __future__ import annotations

import os

# Ambiente de teste definido antes de qualquer import do pacote (get_settings é cacheado)
os.environ.setdefault('JWT_SECRET', 'test-secret-with-at-least-32-bytes-of-entropy')
os.environ.setdefault('REDIS_ENABLED', 'false')
os.environ.setdefault('BOOTSTRAP_ROOT_ADMIN', 'false')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')
os.environ.setdefault('SOCKET_HOST', 'ws.example.test')
os.environ.setdefault('SOCKET_PORT', '9501')

from dataclasses import replace  # noqa: E402
from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from backoffice_app.application.admins.use_cases import AdminAdapters, AdminService  # noqa: E402
from backoffice_app.config import get_settings  # noqa: E402
from backoffice_app.domain.admins.entities import Admin, AdminLogEntry, AdminRole, Permission  # noqa: E402
from backoffice_app.infrastructure.security.jwt import JWTService  # noqa: E402
from backoffice_app.infrastructure.security.passwords import PasswordHasher  # noqa: E402
from backoffice_app.infrastructure.security.totp import TotpVerifier  # noqa: E402
from backoffice_app.interfaces.api.app import create_application  # noqa: E402
from backoffice_app.interfaces.api.dependencies import get_admin_service  # noqa: E402
from backoffice_app.shared.auth_dependencies import AdminIdentity, get_jwt_service  # noqa: E402

ADMIN_PASSWORD = 'secret123'
SITE_ID = 1


class FailingCall(Exception):
    """Falha simulada de colaborador (banco indisponível)."""


class FakeAdminRepository:
    def __init__(self) -> None:
        self.rows: dict[int, Admin] = {}
        self._next_id = 1
        self.fail_on: set[str] = set()
        self.login_meta_calls: list[tuple[int, str]] = []
        self.touched: list[int] = []

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise FailingCall(operation)

    def seed(self, admin: Admin) -> Admin:
        if admin.id is None:
            admin = replace(admin, id=self._next_id)
        self._next_id = max(self._next_id, admin.id) + 1
        self.rows[admin.id] = admin
        return admin

    async def get_by_username_and_site(self, username, site_id):
        self._maybe_fail('get_by_username_and_site')
        for admin in self.rows.values():
            if admin.username == username and admin.site_id == site_id and admin.deleted_at is None:
                return admin
        return None

    async def get_by_id(self, admin_id):
        self._maybe_fail('get_by_id')
        admin = self.rows.get(admin_id)
        if admin is None or admin.deleted_at is not None:
            return None
        return admin

    async def update_login_meta(self, admin_id, ip, logged_at):
        self._maybe_fail('update_login_meta')
        self.login_meta_calls.append((admin_id, ip))
        admin = self.rows[admin_id]
        admin.last_login_ip = ip
        admin.last_login_time = logged_at

    async def touch(self, admin_id):
        self._maybe_fail('touch')
        self.touched.append(admin_id)

    async def update_password(self, admin_id, password_hash):
        self._maybe_fail('update_password')
        self.rows[admin_id].password_hash = password_hash

    async def add(self, admin):
        self._maybe_fail('add')
        return self.seed(replace(admin, created_at=datetime.now(timezone.utc)))

    async def list(self, site_id, offset, limit, username=None, status=None):
        self._maybe_fail('list')
        rows = [
            admin
            for admin in self.rows.values()
            if admin.site_id == site_id
            and admin.deleted_at is None
            and (not username or username in admin.username)
            and (status is None or admin.status == status)
        ]
        rows.sort(key=lambda admin: admin.id, reverse=True)
        return rows[offset : offset + limit], len(rows)

    async def update(self, admin_id, values):
        self._maybe_fail('update')
        admin = self.rows[admin_id]
        for key, value in values.items():
            setattr(admin, key, value)

    async def soft_delete(self, admin_id):
        self._maybe_fail('soft_delete')
        self.rows[admin_id].deleted_at = datetime.now(timezone.utc)


class FakeAdminRoleRepository:
    def __init__(self) -> None:
        self.rows: dict[int, AdminRole] = {}
        self.fail = False

    async def get_by_id(self, role_id):
        if self.fail:
            raise FailingCall('roles')
        return self.rows.get(role_id)

    async def get_many(self, role_ids):
        if self.fail:
            raise FailingCall('roles')
        return [self.rows[role_id] for role_id in role_ids if role_id in self.rows]

    async def list_by_site(self, site_id):
        if self.fail:
            raise FailingCall('roles')
        return [role for role in self.rows.values() if role.site_id == site_id]


class FakePermissionRepository:
    def __init__(self) -> None:
        self.rows: list[Permission] = []
        self.fail = False

    async def list_enabled(self):
        if self.fail:
            raise FailingCall('permissions')
        enabled = [permission for permission in self.rows if permission.status == 1]
        return sorted(enabled, key=lambda permission: (permission.sort, permission.id))


class FakeAdminLogRepository:
    def __init__(self) -> None:
        self.entries: list[AdminLogEntry] = []
        self.fail = False

    async def add(self, entry):
        if self.fail:
            raise FailingCall('logs')
        self.entries.append(replace(entry, id=len(self.entries) + 1))

    async def list(self, site_id, offset, limit, username=None, start=None, end=None):
        rows = [
            entry
            for entry in self.entries
            if entry.site_id == site_id
            and (not username or entry.admin_username == username)
            and (start is None or entry.created_at >= start)
            and (end is None or entry.created_at <= end)
        ]
        rows.sort(key=lambda entry: entry.created_at, reverse=True)
        return rows[offset : offset + limit], len(rows)

    @property
    def remarks(self) -> list[str]:
        return [entry.remark for entry in self.entries]


class FakeOtpReplayGuard:
    def __init__(self) -> None:
        self.used: set[tuple[int, str]] = set()

    async def consume(self, admin_id, code):
        key = (admin_id, code)
        if key in self.used:
            return False
        self.used.add(key)
        return True


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def password_hasher():
    # Custo mínimo do bcrypt para manter a suíte rápida
    return PasswordHasher(rounds=4)


@pytest.fixture
def jwt_service(settings):
    return JWTService(settings.JWT_SECRET, settings.JWT_ALGORITHM)


@pytest.fixture
def admins():
    return FakeAdminRepository()


@pytest.fixture
def roles():
    repository = FakeAdminRoleRepository()
    repository.rows[1] = AdminRole(site_id=SITE_ID, name='Super Admin', id=1)
    repository.rows[2] = AdminRole(site_id=SITE_ID, name='Operator', id=2)
    return repository


@pytest.fixture
def permissions():
    repository = FakePermissionRepository()
    repository.rows = [
        Permission(id=1, parent_id=0, name='System', type=1, frontend_url='/system', sort=1),
        Permission(id=2, parent_id=1, name='Admins', type=1, frontend_url='/system/admins', sort=1),
        Permission(id=3, parent_id=2, name='Create admin', type=2, backend_url='admin.create', sort=1),
    ]
    return repository


@pytest.fixture
def logs():
    return FakeAdminLogRepository()


@pytest.fixture
def otp_guard():
    return FakeOtpReplayGuard()


@pytest.fixture
def service(admins, roles, permissions, logs, settings, password_hasher, jwt_service, otp_guard):
    return AdminService(
        adapters=AdminAdapters(admins=admins, roles=roles, permissions=permissions, logs=logs),
        settings=settings,
        password_hasher=password_hasher,
        jwt_service=jwt_service,
        totp_verifier=TotpVerifier(valid_window=1),
        otp_guard=otp_guard,
    )


@pytest.fixture
def make_admin(admins, password_hasher):
    def _make_admin(username='alice', password=ADMIN_PASSWORD, **overrides) -> Admin:
        fields = {
            'site_id': SITE_ID,
            'username': username,
            'nickname': username.title(),
            'password_hash': password_hasher.hash(password),
            'admin_role_id': 1,
            'status': 1,
            'created_at': datetime.now(timezone.utc),
        }
        fields.update(overrides)
        return admins.seed(Admin(**fields))

    return _make_admin


@pytest.fixture
def admin(make_admin):
    return make_admin()


@pytest.fixture
def identity(admin):
    return AdminIdentity(admin_id=admin.id, username=admin.username, site_id=admin.site_id)


@pytest.fixture
def client(service, jwt_service):
    app = create_application()
    app.dependency_overrides[get_admin_service] = lambda: service
    app.dependency_overrides[get_jwt_service] = lambda: jwt_service

    # Sem o bloco `with`: o lifespan (bootstrap no Postgres) não é executado
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(jwt_service, admin):
    return {'Authorization': f'Bearer {jwt_service.issue(admin)}'}
