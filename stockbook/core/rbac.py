"""
Role-Based Access Control

Roles are a closed set. Capabilities are derived from the role on every
call and never stored. Every predicate here is total: an absent, unknown
or legacy role is denied everything instead of raising.

- ADMIN: full access, the only role that can delete records or manage users
- OFFICE_WAREHOUSE / OFFICE_PURCHASING: view, create and edit everything
"""
import enum
from typing import Dict, FrozenSet, List, Optional, Union

from .errors import InvalidArgument


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    OFFICE_WAREHOUSE = "OFFICE_WAREHOUSE"
    OFFICE_PURCHASING = "OFFICE_PURCHASING"


# Values that still exist in old user rows
LEGACY_ROLES = frozenset({"OFFICE", "FACTORY"})
LEGACY_ROLE_TARGET = Role.OFFICE_PURCHASING


class Capability(str, enum.Enum):
    VIEW_REPORTS = "viewReports"
    EXPORT_REPORTS = "exportReports"
    MANAGE_MATERIALS = "manageMaterials"
    DELETE_MATERIALS = "deleteMaterials"
    MANAGE_FINISHED_GOODS = "manageFinishedGoods"
    DELETE_FINISHED_GOODS = "deleteFinishedGoods"
    MANAGE_LOCATIONS = "manageLocations"
    DELETE_LOCATIONS = "deleteLocations"
    CREATE_STOCK_MOVEMENTS = "createStockMovements"
    EDIT_STOCK_MOVEMENTS = "editStockMovements"
    DELETE_STOCK_MOVEMENTS = "deleteStockMovements"
    CREATE_BATCHES = "createBatches"
    EDIT_BATCHES = "editBatches"
    DELETE_BATCHES = "deleteBatches"
    MANAGE_USERS = "manageUsers"


_ADMIN_ONLY = frozenset({
    Capability.DELETE_MATERIALS,
    Capability.DELETE_FINISHED_GOODS,
    Capability.DELETE_LOCATIONS,
    Capability.DELETE_STOCK_MOVEMENTS,
    Capability.DELETE_BATCHES,
    Capability.MANAGE_USERS,
})

_OFFICE = frozenset(c for c in Capability if c not in _ADMIN_ONLY)

PERMISSIONS: Dict[Role, FrozenSet[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.OFFICE_WAREHOUSE: _OFFICE,
    Role.OFFICE_PURCHASING: _OFFICE,
}

RoleLike = Union[Role, str, None]


def parse_role(value: RoleLike) -> Optional[Role]:
    """Return the Role for a value, or None for absent, unknown and legacy values"""
    if isinstance(value, Role):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def migrate_legacy_role(value: RoleLike) -> Role:
    """
    Map a stored role value onto the current role set.

    Used by data migration only. FACTORY users were folded into OFFICE,
    and OFFICE users became OFFICE_PURCHASING; an admin reassigns
    warehouse staff by hand afterwards.
    """
    role = parse_role(value)
    if role is not None:
        return role
    if value in LEGACY_ROLES:
        return LEGACY_ROLE_TARGET
    raise InvalidArgument(f"Unknown role value: {value!r}", field="role")


def capabilities_for(role: RoleLike) -> FrozenSet[Capability]:
    parsed = parse_role(role)
    if parsed is None:
        return frozenset()
    return PERMISSIONS[parsed]


def evaluate_permission(role: RoleLike, capability: Union[Capability, str]) -> bool:
    """True when the role grants the capability; never raises"""
    try:
        capability = Capability(capability)
    except ValueError:
        return False
    return capability in capabilities_for(role)


def can_view_reports(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.VIEW_REPORTS)


def can_export_reports(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.EXPORT_REPORTS)


def can_manage_materials(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.MANAGE_MATERIALS)


def can_delete_materials(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.DELETE_MATERIALS)


def can_manage_finished_goods(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.MANAGE_FINISHED_GOODS)


def can_delete_finished_goods(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.DELETE_FINISHED_GOODS)


def can_manage_locations(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.MANAGE_LOCATIONS)


def can_delete_locations(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.DELETE_LOCATIONS)


def can_create_stock_movements(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.CREATE_STOCK_MOVEMENTS)


def can_edit_stock_movements(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.EDIT_STOCK_MOVEMENTS)


def can_delete_stock_movements(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.DELETE_STOCK_MOVEMENTS)


def can_create_batches(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.CREATE_BATCHES)


def can_edit_batches(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.EDIT_BATCHES)


def can_delete_batches(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.DELETE_BATCHES)


def can_manage_users(role: RoleLike) -> bool:
    return evaluate_permission(role, Capability.MANAGE_USERS)


def permission_denial_message(action: str, role: RoleLike) -> str:
    """User-facing message for a denied action"""
    if isinstance(role, Role):
        role_display = role.value
    else:
        role_display = role or "none"
    return f"You do not have permission to {action}. Current role: {role_display}."


def permission_matrix() -> Dict[str, List[str]]:
    """Role -> capability names, for clients that hide disallowed actions"""
    return {
        role.value: sorted(c.value for c in PERMISSIONS[role])
        for role in Role
    }
