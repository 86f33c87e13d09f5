# caminho: backoffice_app/domain/admins/enums.py
# Funções:
# - Define os value objects de status de administradores, papéis e permissões.
# - Fornece utilitário para obter as escolhas válidas de cada Literal.

from __future__ import annotations

from typing import Annotated, Any, Literal, get_args, get_origin

from pydantic import Field


def _choices_from_annotated_literal(annotation: Any) -> tuple[int, ...]:
    """Extrai as opções de um tipo Annotated que contém um Literal."""
    if get_origin(annotation) is Literal:
        literal = annotation
    else:
        literal = next((arg for arg in get_args(annotation) if get_origin(arg) is Literal), None)
    if literal is None:
        msg = f'Annotation {annotation!r} does not include a typing.Literal.'
        raise TypeError(msg)
    return tuple(get_args(literal))


# ─────────────────────────────────────────────────────────────────────────────
# Status do Administrador
# 1 = habilitado (pode autenticar); 0 = desabilitado.
# O soft delete é independente do status (coluna deleted_at).
# ─────────────────────────────────────────────────────────────────────────────
AdminStatus = Annotated[
    Literal[0, 1],
    Field(description='Estado da conta; apenas 1 (habilitado) permite autenticar.'),
]
ADMIN_STATUS_CHOICES: tuple[int, ...] = _choices_from_annotated_literal(AdminStatus)
ADMIN_STATUS_DISABLED: int = 0
ADMIN_STATUS_ENABLED: int = 1


# ─────────────────────────────────────────────────────────────────────────────
# Tipo de Permissão
# 1 = menu navegável (expandido por padrão); 2 = operação (gate fino).
# ─────────────────────────────────────────────────────────────────────────────
PermissionType = Annotated[Literal[1, 2], Field(description='1 = menu, 2 = operação.')]
PERMISSION_TYPE_CHOICES: tuple[int, ...] = _choices_from_annotated_literal(PermissionType)
PERMISSION_TYPE_MENU: int = 1
PERMISSION_TYPE_OPERATION: int = 2

# Apenas permissões habilitadas participam da árvore.
PERMISSION_STATUS_DISABLED: int = 0
PERMISSION_STATUS_ENABLED: int = 1

# Raiz da árvore de permissões
PERMISSION_ROOT_PARENT_ID: int = 0
