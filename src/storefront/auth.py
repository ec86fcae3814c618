"""Authenticated principals and the authorization rules of the back office.

Business logic never reads request state: every command carries the acting
principal's id and role, and the checks below run against that principal.
"""

from dataclasses import dataclass
from enum import Enum

from storefront.errors import AuthorizationError


class Role(Enum):
    SUPERUSER = "superuser"
    WORKER = "worker"


@dataclass(frozen=True)
class Principal:
    id: str
    role: Role

    @classmethod
    def of(cls, actor_id: str | None, role: str | Role | None) -> "Principal":
        if not actor_id or not str(actor_id).strip():
            raise AuthorizationError("Authentication required", code="unauthenticated")
        try:
            resolved = role if isinstance(role, Role) else Role(role)
        except ValueError:
            raise AuthorizationError(f"Unknown role: {role}", code="unauthenticated") from None
        return cls(id=str(actor_id).strip(), role=resolved)

    @property
    def is_superuser(self) -> bool:
        return self.role is Role.SUPERUSER


def require_superuser(principal: Principal, message: str) -> None:
    if not principal.is_superuser:
        raise AuthorizationError(message)


def ensure_can_update_task(principal: Principal, task, reassigning: bool) -> None:
    """Workers may only touch their own tasks and may never reassign them."""
    if principal.is_superuser:
        return
    if task.assigned_to != principal.id:
        raise AuthorizationError("You can only update your own tasks")
    if reassigning:
        raise AuthorizationError("Only superusers can reassign tasks")


def ensure_can_update_order(principal: Principal, order, changes_assignment: bool) -> None:
    """Workers may update orders assigned to them, but never the assignment itself."""
    if principal.is_superuser:
        return
    if changes_assignment:
        raise AuthorizationError("Workers cannot assign orders")
    if order.assigned_to != principal.id:
        raise AuthorizationError("You can only update orders assigned to you")


def ensure_can_view_order(principal: Principal, order, tasks) -> None:
    """Workers see orders assigned to them or orders they hold a task on."""
    if principal.is_superuser or order.assigned_to == principal.id:
        return
    if any(task.assigned_to == principal.id for task in tasks):
        return
    raise AuthorizationError("You don't have access to this order")
