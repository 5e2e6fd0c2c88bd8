"""
Commerce IAM Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class Gender(str, Enum):
    """Self-declared gender on an actor profile"""

    male = "Male"
    female = "Female"
    others = "Others"
    rather_not_to_say = "Rather not to say"


class Action(str, Enum):
    """CRUD action guarded by a capability flag"""

    create = "create"
    read = "read"
    update = "update"
    delete = "delete"
