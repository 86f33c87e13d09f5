# caminho: backoffice_app/application/admins/dto.py
# Funções:
# - DTOs Pydantic para entrada/saída de casos de uso de Admin
# - ApiResponse: envelope uniforme {code, message, data}

from __future__ import annotations

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice_app.config.constants import (
    NICKNAME_LENGTH_MAX,
    NICKNAME_LENGTH_MIN,
    PASSWORD_BYTES_MAX,
    PASSWORD_LENGTH_MAX,
    PASSWORD_LENGTH_MIN,
    USERNAME_LENGTH_MAX,
    USERNAME_LENGTH_MIN,
    VERIFICATION_CODE_LENGTH_MAX,
)
from backoffice_app.domain.admins.enums import ADMIN_STATUS_ENABLED, AdminStatus

T = TypeVar('T')

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'


def check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value and len(value.encode('utf-8')) > PASSWORD_BYTES_MAX:
        raise ValueError(f'password must be at most {PASSWORD_BYTES_MAX} bytes')
    return value


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime(DATETIME_FORMAT) if value else ''


class ApiResponse(BaseModel, Generic[T]):
    code: int = 200
    message: str = 'ok'
    data: Optional[T] = None


# -- Sessão -------------------------------------------------------------------


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True)

    # Login não reaplica as regras de cadastro: contas antigas continuam entrando.
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=64)
    code: Optional[str] = Field(default=None, max_length=VERIFICATION_CODE_LENGTH_MAX)


class LoginResponse(BaseModel):
    token: str
    socket: str = ''


class RefreshTokenResponse(BaseModel):
    token: str


class MenuOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: int
    name: str
    backend_url: str = ''
    frontend_url: str = ''
    path: str = ''
    icon: str = ''
    sort: int = 0
    open: bool = False
    checked: bool = False
    children: list['MenuOutput'] = Field(default_factory=list)


class AdminInfoResponse(BaseModel):
    roles: list[str]
    name: str
    avatar: str
    introduction: str
    menus: list[MenuOutput]


class MenusResponse(BaseModel):
    menus: list[MenuOutput]


class AdminMessageResponse(BaseModel):
    success: bool
    message: str


class AdminChangePasswordRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    # Vazios e senhas longas demais são aceitos aqui e respondidos com {success: false, message}.
    old_password: str = Field(default='', max_length=64)
    new_password: str = Field(default='', max_length=64)


# -- Gestão de administradores --------------------------------------------------


class AdminCreateInput(BaseModel):
    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True)

    username: str = Field(min_length=USERNAME_LENGTH_MIN, max_length=USERNAME_LENGTH_MAX)
    password: str = Field(min_length=PASSWORD_LENGTH_MIN, max_length=PASSWORD_LENGTH_MAX)
    nickname: str = Field(min_length=NICKNAME_LENGTH_MIN, max_length=NICKNAME_LENGTH_MAX)
    role: int = Field(ge=1)
    status: AdminStatus = ADMIN_STATUS_ENABLED
    switch_google2fa: bool = False

    @field_validator('password')
    @classmethod
    def validate_password_bytes(cls, value: Optional[str]) -> Optional[str]:
        return check_password_bytes(value)


class AdminCreateOutput(BaseModel):
    id: int
    username: str
    google2fa_uri: Optional[str] = None


class AdminUpdateInput(BaseModel):
    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True)

    password: Optional[str] = Field(default=None, min_length=PASSWORD_LENGTH_MIN, max_length=PASSWORD_LENGTH_MAX)
    nickname: Optional[str] = Field(default=None, min_length=NICKNAME_LENGTH_MIN, max_length=NICKNAME_LENGTH_MAX)
    role: Optional[int] = Field(default=None, ge=1)
    status: Optional[AdminStatus] = None

    @field_validator('password')
    @classmethod
    def validate_password_bytes(cls, value: Optional[str]) -> Optional[str]:
        return check_password_bytes(value)


class AdminOutput(BaseModel):
    id: int
    username: str
    nickname: str
    role: int
    role_name: str = ''
    status: int
    last_login_ip: str = ''
    last_login_time: str = ''
    created_at: str = ''


class AdminListResponse(BaseModel):
    items: list[AdminOutput]
    total: int
    page: int
    size: int
    google2fa_access: bool = False


class AdminLogOutput(BaseModel):
    username: str
    ip: str
    remark: str
    created_at: str


class AdminLogListResponse(BaseModel):
    items: list[AdminLogOutput]
    count: int


class RoleOutput(BaseModel):
    id: int
    name: str
    status: int


class RoleListResponse(BaseModel):
    items: list[RoleOutput]
