"""
Authorization Evaluator

Capability-flag checks plus an ordered chain of relationship guards. The
first guard that matches short-circuits with its own message.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence
from uuid import UUID

from commerce_iam.app.errors import authorization_error
from commerce_iam.app.services.projections import PermissionSession
from commerce_iam.domain.capabilities import PROTECTED_ROLES, privilege_tier
from commerce_iam.domain.entities import Action
from commerce_iam.libs.result import Result, Return

_FLAG_BY_ACTION = {
    Action.create: "can_create",
    Action.read: "can_read",
    Action.update: "can_update",
    Action.delete: "can_delete",
}


class GuardKind(str, Enum):
    protected_role = "PROTECTED_ROLE"
    self_mutation = "SELF_MUTATION"
    peer_tier = "PEER_TIER"


@dataclass(frozen=True)
class GuardContext:
    """Who is acting on whom"""

    caller_id: UUID
    caller_role: Optional[str]
    target_id: UUID
    target_role: Optional[str]


@dataclass(frozen=True)
class Guard:
    kind: GuardKind
    matches: Callable[[GuardContext], bool]
    message: str


def _targets_protected_role(ctx: GuardContext) -> bool:
    return (ctx.target_role or "").upper() in PROTECTED_ROLES


def _targets_self(ctx: GuardContext) -> bool:
    return ctx.caller_id == ctx.target_id


def _targets_peer(ctx: GuardContext) -> bool:
    return privilege_tier(ctx.caller_role) <= privilege_tier(ctx.target_role)


DEFAULT_GUARDS: Sequence[Guard] = (
    Guard(GuardKind.protected_role, _targets_protected_role, "You cannot change {subject} for super admin"),
    Guard(GuardKind.self_mutation, _targets_self, "You cannot change your own {subject}"),
    Guard(
        GuardKind.peer_tier,
        _targets_peer,
        "You are not allowed to change {subject} of a user with an equal or higher role",
    ),
)


def has_capability(
    permissions: Iterable[PermissionSession], name: str, action: Action
) -> bool:
    """True when any permission row for ``name`` grants ``action``"""
    flag = _FLAG_BY_ACTION[Action(action)]
    return any(p.name == name and getattr(p, flag) for p in permissions)


class AuthorizationEvaluator:
    """
    Central policy for privileged operations.

    Business Rules:
    - Raw capability flags decide whether an action is allowed at all
    - Guards run in order: protected role, self mutation, peer tier
    - Guards apply regardless of the caller's flags
    """

    def __init__(self, guards: Sequence[Guard] = DEFAULT_GUARDS):
        self.guards = tuple(guards)

    def has_capability(
        self, permissions: Iterable[PermissionSession], name: str, action: Action
    ) -> bool:
        return has_capability(permissions, name, action)

    def require(
        self,
        permissions: Iterable[PermissionSession],
        requirements: Iterable[tuple],
        message: str,
    ) -> Result[None]:
        """
        Require every (capability name, action) pair.

        Args:
            permissions: Caller's permission projections
            requirements: Pairs of capability name and action
            message: Rejection message when any pair is missing
        """
        permissions = list(permissions)
        for name, action in requirements:
            if not has_capability(permissions, name, action):
                return Return.err(authorization_error(message))
        return Return.ok(None)

    def check_guards(self, context: GuardContext, subject: str = "permission") -> Result[None]:
        for guard in self.guards:
            if guard.matches(context):
                return Return.err(
                    authorization_error(guard.message.format(subject=subject), guard.kind.value)
                )
        return Return.ok(None)
