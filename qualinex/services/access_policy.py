"""
Access policy: who may do what to which resource.

``decide`` is a pure function. It never touches the database; callers load
the warranty (and the prospective assignee, for assignments) first and
translate a deny into an error with ``require`` before mutating anything.

Rules are evaluated in order and the first match wins:

1. Anonymous callers are denied everything except the public code lookup.
2. Admin-only actions require the admin role.
3. Reading, updating or deleting a warranty requires ownership or admin.
4. Owners may delete only pending warranties, and edit only while the
   claim is still open.
5. An assignee, when given, must be an existing, active administrator.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from qualinex.core.errors import AuthenticationError, ForbiddenError, InvalidAssigneeError
from qualinex.models.user import User, UserRole
from qualinex.models.warranty import OWNER_EDITABLE_STATUSES, Warranty, WarrantyStatus


class ResourceKind(str, Enum):
    WARRANTY = "warranty"
    USER = "user"
    REPORT = "report"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST_OWN = "list_own"
    LIST_ALL = "list_all"
    ADMIN_MUTATE = "admin_mutate"
    ASSIGN = "assign"
    REPORTING = "reporting"
    ADMIN_ACCESS = "admin_access"
    PUBLIC_LOOKUP = "public_lookup"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INACTIVE = "inactive"
    FORBIDDEN_ROLE = "forbidden_role"
    FORBIDDEN_OWNER = "forbidden_owner"
    NOT_DELETABLE = "not_deletable"
    NOT_EDITABLE = "not_editable"
    INVALID_ASSIGNEE = "invalid_assignee"


ADMIN_ONLY_ACTIONS = frozenset({
    Action.LIST_ALL,
    Action.ADMIN_MUTATE,
    Action.ASSIGN,
    Action.REPORTING,
    Action.ADMIN_ACCESS,
})

OWNED_ACTIONS = frozenset({Action.READ, Action.UPDATE, Action.DELETE})

DENY_MESSAGES = {
    DenyReason.UNAUTHENTICATED: "Not authenticated",
    DenyReason.INACTIVE: "User account is disabled",
    DenyReason.FORBIDDEN_ROLE: "Admin access required",
    DenyReason.FORBIDDEN_OWNER: "Access denied",
    DenyReason.NOT_DELETABLE: "Cannot delete warranty that is no longer pending",
    DenyReason.NOT_EDITABLE: "Warranty can no longer be edited",
    DenyReason.INVALID_ASSIGNEE: "Invalid assigned user - must be an active admin",
}


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy check. Truthy when allowed."""
    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


def _is_admin(actor: User) -> bool:
    return actor.role == UserRole.ADMIN


def decide(
    actor: Optional[User],
    resource_kind: ResourceKind,
    action: Action,
    resource: Optional[Warranty] = None,
    *,
    assignee_id: Optional[uuid.UUID] = None,
    assignee: Optional[User] = None,
) -> Decision:
    """
    Decide whether ``actor`` may perform ``action``.

    Args:
        actor: Authenticated user, or None for anonymous callers.
        resource_kind: Kind of resource the action targets.
        action: Requested action.
        resource: The warranty, for per-record actions.
        assignee_id: Requested assignee for assignments; None unassigns.
        assignee: The user ``assignee_id`` resolved to, or None if missing.

    Returns:
        Decision: ALLOW, or a deny carrying the reason.
    """
    if action == Action.PUBLIC_LOOKUP:
        return ALLOW

    if actor is None:
        return deny(DenyReason.UNAUTHENTICATED)

    if action in ADMIN_ONLY_ACTIONS and not _is_admin(actor):
        return deny(DenyReason.FORBIDDEN_ROLE)

    if resource_kind == ResourceKind.WARRANTY and action in OWNED_ACTIONS:
        if resource is None:
            raise ValueError(f"{action.value} requires the target warranty")
        if resource.user_id != actor.id and not _is_admin(actor):
            return deny(DenyReason.FORBIDDEN_OWNER)
        if not _is_admin(actor):
            if action == Action.DELETE and resource.status != WarrantyStatus.PENDING:
                return deny(DenyReason.NOT_DELETABLE)
            if action == Action.UPDATE and resource.status not in OWNER_EDITABLE_STATUSES:
                return deny(DenyReason.NOT_EDITABLE)

    if action in (Action.ASSIGN, Action.ADMIN_MUTATE) and assignee_id is not None:
        if (
            assignee is None
            or assignee.id != assignee_id
            or not assignee.is_active
            or not _is_admin(assignee)
        ):
            return deny(DenyReason.INVALID_ASSIGNEE)

    return ALLOW


def require(
    actor: Optional[User],
    resource_kind: ResourceKind,
    action: Action,
    resource: Optional[Warranty] = None,
    **kwargs,
) -> None:
    """Raise the matching error when ``decide`` denies the action."""
    decision = decide(actor, resource_kind, action, resource, **kwargs)
    if decision:
        return

    message = DENY_MESSAGES[decision.reason]
    if decision.reason == DenyReason.UNAUTHENTICATED:
        raise AuthenticationError(message)
    if decision.reason == DenyReason.INVALID_ASSIGNEE:
        raise InvalidAssigneeError(message)
    raise ForbiddenError(decision.reason.value, message)
