"""
Capability catalog and predefined role matrices.

A capability is a named permission domain carrying four CRUD flags. Only the
roles listed in ROLE_PERMISSION_MATRIX have a predefined matrix; any other
role is a custom role whose permission rows are managed by hand.
"""

from typing import Dict, Iterable, Tuple

CAPABILITIES: Tuple[str, ...] = (
    "User",
    "Brand",
    "Category",
    "Permission",
    "Product",
    "Product Review",
    "Shipping Class",
    "Sub Category",
    "Tax Class",
    "Tax Status",
    "FAQ",
    "News Letter",
    "Pop Up Banner",
    "Privacy & Policy",
    "Terms & Conditions",
    "Order",
    "Role",
    "Notification",
    "Media",
)

SUPER_ADMIN = "SUPER ADMIN"
ADMIN = "ADMIN"
INVENTORY_MANAGER = "INVENTORY MANAGER"
CUSTOMER_SUPPORT = "CUSTOMER SUPPORT"
CUSTOMER = "CUSTOMER"

# Roles whose holders' permissions and role assignment can never be mutated
PROTECTED_ROLES = frozenset({SUPER_ADMIN})

# Roles that may never be deleted
SYSTEM_ROLES = frozenset({SUPER_ADMIN, ADMIN, INVENTORY_MANAGER, CUSTOMER_SUPPORT, CUSTOMER})

_PRIVILEGE_TIERS = {SUPER_ADMIN: 3, ADMIN: 2, CUSTOMER: 0}
_DEFAULT_TIER = 1

Flags = Dict[str, bool]


def privilege_tier(role_name: str) -> int:
    """Rank used by the peer guard; unknown roles sit between ADMIN and CUSTOMER"""
    return _PRIVILEGE_TIERS.get((role_name or "").upper(), _DEFAULT_TIER)


def _matrix(
    read: Iterable[str] = (),
    create: Iterable[str] = (),
    update: Iterable[str] = (),
    delete: Iterable[str] = (),
) -> Dict[str, Flags]:
    read, create, update, delete = set(read), set(create), set(update), set(delete)
    names = read | create | update | delete
    unknown = names - set(CAPABILITIES)
    if unknown:
        raise ValueError(f"Unknown capabilities in matrix: {sorted(unknown)}")

    return {
        name: {
            "can_create": name in create,
            "can_read": name in read,
            "can_update": name in update,
            "can_delete": name in delete,
        }
        for name in CAPABILITIES
        if name in names
    }


_CUSTOMER_READ = (
    "Brand",
    "Category",
    "Product",
    "Product Review",
    "Shipping Class",
    "Sub Category",
    "Tax Class",
    "Tax Status",
    "FAQ",
    "Pop Up Banner",
    "Privacy & Policy",
    "Terms & Conditions",
    "Order",
    "Notification",
)

_CATALOG_MANAGED = ("Brand", "Category", "Sub Category", "Product", "Tax Class", "Tax Status")

_ADMIN_MANAGED = _CATALOG_MANAGED + (
    "FAQ",
    "Pop Up Banner",
    "Privacy & Policy",
    "Terms & Conditions",
    "Order",
    "Notification",
    "User",
    "Permission",
    "Role",
)

ROLE_PERMISSION_MATRIX: Dict[str, Dict[str, Flags]] = {
    SUPER_ADMIN: _matrix(
        read=CAPABILITIES, create=CAPABILITIES, update=CAPABILITIES, delete=CAPABILITIES
    ),
    ADMIN: _matrix(
        read=_CUSTOMER_READ + ("User", "Permission", "Role"),
        create=_ADMIN_MANAGED,
        update=_ADMIN_MANAGED,
        delete=_ADMIN_MANAGED,
    ),
    INVENTORY_MANAGER: _matrix(
        read=_CATALOG_MANAGED + ("Product Review", "Shipping Class"),
        create=_CATALOG_MANAGED,
        update=_CATALOG_MANAGED,
        delete=_CATALOG_MANAGED,
    ),
    CUSTOMER: _matrix(
        read=_CUSTOMER_READ,
        create=("Order", "Notification"),
        update=("Product Review", "Notification"),
        delete=("Order", "Product Review", "Notification"),
    ),
}


def matrix_for(role_name: str):
    """Predefined matrix for a role name, or None for a custom role"""
    return ROLE_PERMISSION_MATRIX.get((role_name or "").upper())


ROLE_DESCRIPTIONS = {
    SUPER_ADMIN: "Has full control over all aspects of the eCommerce platform.",
    CUSTOMER: "Regular customers who can browse products, place orders, and view their purchase history.",
}


def catalog_order(name: str):
    """Sort key placing catalog capabilities in catalog order, unknown names last"""
    return (CAPABILITIES.index(name), name) if name in CAPABILITIES else (len(CAPABILITIES), name)
