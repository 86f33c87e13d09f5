import asyncio
from datetime import datetime, timedelta, timezone
from http import HTTPStatus

import pyotp
import pytest
from fastapi import HTTPException

from backoffice_app.application.admins.dto import LoginRequest
from backoffice_app.domain.admins.enums import ADMIN_STATUS_DISABLED
from backoffice_app.infrastructure.security.jwt import JWTService
from backoffice_app.infrastructure.security.totp import TotpVerifier

ADMIN_PASSWORD = 'secret123'
SITE_ID = 1


def _code_outside_window(secret):
    totp = pyotp.TOTP(secret)
    now = datetime.now(timezone.utc)
    accepted = {totp.at(now + timedelta(seconds=offset)) for offset in (-60, -30, 0, 30, 60)}
    return next(code for code in ('000000', '111111', '222222', '333333') if code not in accepted)


def _login(username='alice', password=ADMIN_PASSWORD, code=None):
    return LoginRequest(username=username, password=password, code=code)


async def _login_error(service, payload, client_ip='10.0.0.1'):
    with pytest.raises(HTTPException) as exc_info:
        await service.login(payload, client_ip=client_ip)
    return exc_info.value


async def test_login_returns_token_for_the_admin(service, jwt_service, admin):
    result = await service.login(_login(), client_ip='10.0.0.1')

    claims = jwt_service.validate(result.token)
    assert claims.admin_id == admin.id
    assert claims.username == 'alice'
    assert claims.site_id == SITE_ID


async def test_login_scenario_returns_token_and_socket_address(service, make_admin):
    make_admin(username='admin1', password='secret1')

    result = await service.login(_login('admin1', 'secret1'))

    assert result.token
    assert isinstance(result.socket, str)
    assert result.socket == 'ws.example.test:9501'


async def test_login_records_last_login_and_audit(service, admins, logs, admin):
    await service.login(_login(), client_ip='10.0.0.1')

    assert admins.login_meta_calls == [(admin.id, '10.0.0.1')]
    assert admins.rows[admin.id].last_login_time is not None
    assert logs.remarks == ['login succeeded']
    assert logs.entries[0].admin_username == 'alice'
    assert logs.entries[0].ip == '10.0.0.1'


async def test_disabled_admin_is_told_account_disabled_even_with_right_password(service, make_admin):
    make_admin(status=ADMIN_STATUS_DISABLED)

    error = await _login_error(service, _login())

    assert error.status_code == HTTPStatus.FORBIDDEN
    assert error.detail == {'code': 'ADMIN_ACCOUNT_DISABLED'}


async def test_wrong_password_and_unknown_user_get_the_same_error(service, admin):
    wrong_password = await _login_error(service, _login(password='not-the-password'))
    unknown_user = await _login_error(service, _login(username='nobody'))

    assert wrong_password.status_code == unknown_user.status_code == HTTPStatus.UNAUTHORIZED
    assert wrong_password.detail == unknown_user.detail == {'code': 'ADMIN_INVALID_CREDENTIALS'}


async def test_soft_deleted_admin_cannot_log_in(service, admins, admin):
    await admins.soft_delete(admin.id)

    error = await _login_error(service, _login())

    assert error.detail == {'code': 'ADMIN_INVALID_CREDENTIALS'}


async def test_status_is_checked_before_password(service, make_admin):
    make_admin(status=ADMIN_STATUS_DISABLED)

    error = await _login_error(service, _login(password='not-the-password'))

    assert error.detail == {'code': 'ADMIN_ACCOUNT_DISABLED'}


async def test_admin_from_another_site_is_unknown(service, make_admin):
    make_admin(site_id=SITE_ID + 1)

    error = await _login_error(service, _login())

    assert error.detail == {'code': 'ADMIN_INVALID_CREDENTIALS'}


async def test_failed_login_does_not_write_audit(service, logs, admin):
    await _login_error(service, _login(password='not-the-password'))

    assert logs.entries == []


# -- Segundo fator ----------------------------------------------------------------


@pytest.fixture
def totp_secret():
    return TotpVerifier.new_secret()


@pytest.fixture
def admin_with_2fa(make_admin, totp_secret):
    return make_admin(username='bob', switch_google2fa=True, google2fa_secret=totp_secret)


async def test_2fa_code_is_required(service, admin_with_2fa):
    error = await _login_error(service, _login(username='bob'))

    assert error.status_code == HTTPStatus.BAD_REQUEST
    assert error.detail == {'code': 'ADMIN_VERIFICATION_CODE_REQUIRED'}


async def test_2fa_presence_alone_is_not_enough(service, admin_with_2fa, totp_secret):
    error = await _login_error(service, _login(username='bob', code=_code_outside_window(totp_secret)))

    assert error.detail == {'code': 'ADMIN_VERIFICATION_CODE_INVALID'}


async def test_2fa_valid_code_logs_in(service, admin_with_2fa, totp_secret):
    result = await service.login(_login(username='bob', code=pyotp.TOTP(totp_secret).now()))

    assert result.token


async def test_2fa_code_cannot_be_replayed(service, admin_with_2fa, totp_secret):
    code = pyotp.TOTP(totp_secret).now()
    await service.login(_login(username='bob', code=code))

    error = await _login_error(service, _login(username='bob', code=code))

    assert error.detail == {'code': 'ADMIN_VERIFICATION_CODE_INVALID'}


async def test_2fa_enabled_without_secret_rejects_any_code(service, make_admin):
    make_admin(username='carol', switch_google2fa=True, google2fa_secret=None)

    error = await _login_error(service, _login(username='carol', code='123456'))

    assert error.detail == {'code': 'ADMIN_VERIFICATION_CODE_INVALID'}


async def test_password_is_checked_before_2fa(service, admin_with_2fa):
    error = await _login_error(service, _login(username='bob', password='not-the-password'))

    assert error.detail == {'code': 'ADMIN_INVALID_CREDENTIALS'}


# -- Falhas de colaboradores ---------------------------------------------------------


async def test_lookup_failure_is_a_system_error(service, admins, admin):
    admins.fail_on.add('get_by_username_and_site')

    error = await _login_error(service, _login())

    assert error.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert error.detail == {'code': 'SYSTEM_ERROR'}


async def test_best_effort_failures_do_not_fail_login(service, admins, logs, admin):
    admins.fail_on.add('update_login_meta')
    logs.fail = True

    result = await service.login(_login())

    assert result.token


async def test_missing_signing_secret_is_a_system_error(service, admin):
    service._jwt = JWTService('')

    error = await _login_error(service, _login())

    assert error.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert error.detail == {'code': 'SYSTEM_ERROR'}


async def test_cancellation_propagates_and_skips_audit(service, admins, logs, admin):
    async def cancelled(*args, **kwargs):
        raise asyncio.CancelledError()

    admins.update_login_meta = cancelled

    with pytest.raises(asyncio.CancelledError):
        await service.login(_login())
    assert logs.entries == []
