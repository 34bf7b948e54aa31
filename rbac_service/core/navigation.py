"""Navigation surfaces gated by `view` on a registry entity.

Denial here is silent: items the session cannot view are simply left out,
and a route guard answers with the redirect target instead of an error.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from rbac_service.auth.rbac import check_permission

HOME_PATH = "/"


@dataclass(frozen=True)
class NavItem:
    group: str
    label: str
    path: str
    entity: str | None  # None = always visible


NAVIGATION: tuple[NavItem, ...] = (
    NavItem("Resumen", "Dashboard", "/", None),
    NavItem("Gestión de Acceso", "Usuarios", "/users", "Usuarios"),
    NavItem("Gestión de Acceso", "Roles", "/roles", "Roles"),
    NavItem("Gestión de Acceso", "Permisos", "/permissions", "Permisos"),
    NavItem("Operaciones", "Actividades", "/activities", "Actividades"),
    NavItem("Operaciones", "Estado Medidores", "/meter-readings", "Estado Medidores"),
    NavItem("Operaciones", "Carga Data Asistencia", "/attendance/upload", "Asistencia"),
    NavItem("Operaciones", "Búsqueda Asistencia", "/attendance/search", "Asistencia"),
    NavItem("Innovación", "Herramientas IA", "/ai-tools", "Herramientas IA"),
)


def visible_navigation(matrix: Mapping[str, Any] | None) -> list[NavItem]:
    """Navigation items the matrix may view, in menu order."""
    return [
        item
        for item in NAVIGATION
        if item.entity is None or check_permission(matrix, item.entity, "view")
    ]


def route_target(matrix: Mapping[str, Any] | None, path: str) -> str:
    """Where a request for `path` should land: the path itself, or home when hidden."""
    for item in NAVIGATION:
        if item.path == path:
            if item.entity is None or check_permission(matrix, item.entity, "view"):
                return path
            return HOME_PATH
    return HOME_PATH
