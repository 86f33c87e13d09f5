# caminho: backoffice_app/shared/request_context.py
# Funções:
# - current_admin_id_var: ContextVar com o admin autenticado da requisição em curso
# - bind_admin_id()/get_current_admin_id(): usados pela camada HTTP e pelos logs
#
# Os casos de uso NÃO leem este contexto: recebem a identidade como argumento.

from __future__ import annotations

from contextvars import ContextVar

current_admin_id_var: ContextVar[int | None] = ContextVar('current_admin_id', default=None)


def bind_admin_id(admin_id: int) -> None:
    current_admin_id_var.set(admin_id)


def get_current_admin_id() -> int | None:
    return current_admin_id_var.get()
