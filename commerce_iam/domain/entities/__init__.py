"""
Commerce IAM Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import Action, Gender

# Export all entities
from .role import Role
from .user import User
from .permission import Permission

__all__ = [
    # Enums
    "Action",
    "Gender",
    # Entities
    "Role",
    "User",
    "Permission",
]
