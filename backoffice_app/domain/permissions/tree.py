# caminho: backoffice_app/domain/permissions/tree.py
# Funções:
# - MenuNode: nó mutável da árvore de menus
# - build_menu_tree(): converte a lista plana de permissões em floresta ordenada

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from backoffice_app.domain.admins.entities import Permission
from backoffice_app.domain.admins.enums import PERMISSION_ROOT_PARENT_ID, PERMISSION_TYPE_MENU


@dataclass(slots=True)
class MenuNode:
    id: int
    type: int
    name: str
    backend_url: str
    frontend_url: str
    path: str
    icon: str
    sort: int
    open: bool
    checked: bool = False
    children: list['MenuNode'] = field(default_factory=list)


def _to_node(permission: Permission) -> MenuNode:
    return MenuNode(
        id=permission.id,
        type=permission.type,
        name=permission.name,
        backend_url=permission.backend_url,
        frontend_url=permission.frontend_url,
        path=permission.frontend_url,
        icon=permission.icon,
        sort=permission.sort,
        open=permission.type == PERMISSION_TYPE_MENU,
    )


def build_menu_tree(permissions: Iterable[Permission]) -> list[MenuNode]:
    """Monta a floresta de menus a partir de permissões já ordenadas por (sort, id).

    Montagem iterativa em duas passadas sobre um índice id -> nó:

    1. cria um nó para cada permissão;
    2. anexa cada nó à lista de raízes (parent_id == 0) ou aos filhos do pai.

    Um nó cujo pai não está no conjunto é descartado. Como os descendentes só
    são alcançáveis através do pai, um órfão some em qualquer nível da árvore.
    Não há recursão, então a montagem sempre termina, mesmo com ciclos entre
    parent_ids (nós presos em um ciclo nunca chegam a uma raiz).
    """
    records = list(permissions)
    nodes: dict[int, MenuNode] = {}
    for permission in records:
        nodes[permission.id] = _to_node(permission)

    roots: list[MenuNode] = []
    for permission in records:
        node = nodes[permission.id]
        if permission.parent_id == PERMISSION_ROOT_PARENT_ID:
            roots.append(node)
            continue
        parent = nodes.get(permission.parent_id)
        if parent is not None:
            parent.children.append(node)
    return roots


def count_nodes(forest: Iterable[MenuNode]) -> int:
    """Conta os nós alcançáveis a partir das raízes (útil para logs)."""
    total = 0
    stack = list(forest)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.children)
    return total
