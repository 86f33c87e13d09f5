from http import HTTPStatus

import pytest
from fastapi import HTTPException

from backoffice_app.application.admins.dto import AdminChangePasswordRequest
from backoffice_app.domain.admins.enums import PERMISSION_STATUS_DISABLED
from backoffice_app.shared.auth_dependencies import AdminIdentity
from backoffice_app.shared.i18n import get_translator

ADMIN_PASSWORD = 'secret123'


async def _error(call):
    with pytest.raises(HTTPException) as exc_info:
        await call
    return exc_info.value


# -- refresh_token ------------------------------------------------------------------


async def test_refresh_issues_a_new_token_for_the_same_identity(service, jwt_service, admins, logs, identity):
    result = await service.refresh_token(identity, client_ip='10.0.0.2')

    claims = jwt_service.validate(result.token)
    assert claims.admin_id == identity.admin_id
    assert claims.site_id == identity.site_id
    assert admins.touched == [identity.admin_id]
    assert logs.remarks == ['token refreshed']


async def test_refresh_without_identity_is_not_logged_in(service):
    error = await _error(service.refresh_token(None))

    assert error.status_code == HTTPStatus.UNAUTHORIZED
    assert error.detail == {'code': 'ADMIN_NOT_LOGGED_IN'}


async def test_refresh_rechecks_account_status(service, admins, admin, identity):
    admins.rows[admin.id].status = 0

    error = await _error(service.refresh_token(identity))

    assert error.detail == {'code': 'ADMIN_ACCOUNT_DISABLED'}


async def test_refresh_for_removed_admin_is_not_logged_in(service, admins, admin, identity):
    await admins.soft_delete(admin.id)

    error = await _error(service.refresh_token(identity))

    assert error.detail == {'code': 'ADMIN_NOT_LOGGED_IN'}


async def test_refresh_survives_touch_failure(service, admins, identity):
    admins.fail_on.add('touch')

    result = await service.refresh_token(identity)

    assert result.token


async def test_identity_from_another_site_is_not_logged_in(service, admin):
    identity = AdminIdentity(admin_id=admin.id, username=admin.username, site_id=admin.site_id + 1)

    error = await _error(service.menus(identity))

    assert error.detail == {'code': 'ADMIN_NOT_LOGGED_IN'}


# -- get_info / menus -----------------------------------------------------------------


async def test_info_returns_profile_and_menu_forest(service, settings, identity):
    info = await service.get_info(identity)

    assert info.roles == ['Super Admin']
    assert info.name == 'Alice'
    assert info.avatar == settings.DEFAULT_AVATAR_URL
    assert info.introduction == 'administrator alice'
    assert [menu.name for menu in info.menus] == ['System']
    assert [child.name for child in info.menus[0].children] == ['Admins']
    operation = info.menus[0].children[0].children[0]
    assert operation.name == 'Create admin'
    assert operation.open is False
    assert info.menus[0].open is True
    assert info.menus[0].path == '/system'


async def test_info_falls_back_to_unknown_role(service, roles, identity):
    roles.fail = True

    info = await service.get_info(identity, translator=get_translator('zh_cn'))

    assert info.roles == ['未知角色']


async def test_info_with_missing_role_uses_unknown_role(service, make_admin):
    admin = make_admin(username='dave', admin_role_id=99)
    identity = AdminIdentity(admin_id=admin.id, username=admin.username, site_id=admin.site_id)

    info = await service.get_info(identity)

    assert info.roles == ['unknown role']


async def test_info_permission_failure_is_a_system_error(service, permissions, identity):
    permissions.fail = True

    error = await _error(service.get_info(identity))

    assert error.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert error.detail == {'code': 'SYSTEM_ERROR'}


async def test_menus_skip_disabled_permissions(service, permissions, identity):
    permissions.rows[1].status = PERMISSION_STATUS_DISABLED

    result = await service.menus(identity)

    assert [menu.name for menu in result.menus] == ['System']
    assert result.menus[0].children == []


async def test_menus_require_identity(service):
    error = await _error(service.menus(None))

    assert error.detail == {'code': 'ADMIN_NOT_LOGGED_IN'}


# -- logout ---------------------------------------------------------------------------


async def test_logout_audits_and_succeeds(service, logs, identity):
    result = await service.logout(identity, client_ip='10.0.0.3')

    assert result.success is True
    assert result.message == 'logged out'
    assert logs.remarks == ['logged out']


async def test_logout_without_identity_fails_softly(service, logs):
    result = await service.logout(None)

    assert result.success is False
    assert result.message == 'not logged in or session expired'
    assert logs.entries == []


async def test_logout_still_succeeds_when_lookup_fails(service, admins, logs, identity):
    admins.fail_on.add('get_by_id')

    result = await service.logout(identity)

    assert result.success is True
    assert logs.entries == []


async def test_logout_from_another_site_is_not_audited(service, admin, logs):
    identity = AdminIdentity(admin_id=admin.id, username=admin.username, site_id=admin.site_id + 1)

    result = await service.logout(identity)

    assert result.success is True
    assert logs.entries == []


# -- change_password ------------------------------------------------------------------


def _change(old=ADMIN_PASSWORD, new='n3w-secret'):
    return AdminChangePasswordRequest(old_password=old, new_password=new)


async def test_change_password_stores_new_hash(service, admins, password_hasher, logs, admin, identity):
    result = await service.change_password(identity, _change(), client_ip='10.0.0.4')

    assert result.success is True
    assert result.message == 'password changed'
    assert password_hasher.verify(admins.rows[admin.id].password_hash, 'n3w-secret')
    assert logs.remarks == ['password changed']


@pytest.mark.parametrize(
    ('old', 'new', 'message'),
    [
        ('', 'n3w-secret', 'old password required'),
        (ADMIN_PASSWORD, '', 'new password required'),
        (ADMIN_PASSWORD, '12345', 'new password must be between 6 and 20 characters'),
        (ADMIN_PASSWORD, 'x' * 21, 'new password must be between 6 and 20 characters'),
        (ADMIN_PASSWORD, '\U0001F600' * 20, 'new password is too long (72 bytes max)'),
        (ADMIN_PASSWORD, ADMIN_PASSWORD, 'new password must differ from the old password'),
        ('wrong-old', 'n3w-secret', 'old password is incorrect'),
    ],
)
async def test_change_password_rejections(service, admins, admin, identity, old, new, message):
    stored = admins.rows[admin.id].password_hash

    result = await service.change_password(identity, _change(old, new))

    assert result.success is False
    assert result.message == message
    assert admins.rows[admin.id].password_hash == stored


async def test_change_password_requires_session(service):
    result = await service.change_password(None, _change())

    assert result.success is False
    assert result.message == 'not logged in or session expired'


async def test_change_password_for_removed_admin_is_not_logged_in(service, admins, admin, identity):
    await admins.soft_delete(admin.id)

    result = await service.change_password(identity, _change())

    assert result.success is False
    assert result.message == 'not logged in or session expired'


async def test_change_password_from_another_site_is_not_logged_in(service, admins, admin, logs):
    stored = admins.rows[admin.id].password_hash
    identity = AdminIdentity(admin_id=admin.id, username=admin.username, site_id=admin.site_id + 1)

    result = await service.change_password(identity, _change())

    assert result.message == 'not logged in or session expired'
    assert admins.rows[admin.id].password_hash == stored
    assert logs.entries == []


async def test_change_password_write_failure(service, admins, identity):
    admins.fail_on.add('update_password')

    result = await service.change_password(identity, _change())

    assert result.success is False
    assert result.message == 'failed to change password'


async def test_change_password_lookup_failure_is_system_error(service, admins, identity):
    admins.fail_on.add('get_by_id')

    result = await service.change_password(identity, _change())

    assert result.success is False
    assert result.message == 'system error, try again'


async def test_change_password_for_disabled_admin(service, admins, admin, identity):
    admins.rows[admin.id].status = 0

    result = await service.change_password(identity, _change())

    assert result.success is False
    assert result.message == 'account disabled'


async def test_change_password_messages_are_translated(service, identity):
    result = await service.change_password(identity, _change(new='123'), translator=get_translator('zh_cn'))

    assert result.success is False
    assert result.message == '新密码长度必须在6-20个字符之间'
