"""Provider lifecycle rules.

A provider is ``pending`` until an admin approves it, after which admins can
move it between ``active`` and ``disabled`` (or back to ``pending`` for
review). This module owns:

- the transition table and the audit record each transition produces,
- the ``disabled_reason`` invariant (set iff status is ``disabled``),
- who may read a single provider record, and the status every public
  listing is restricted to.

Nothing here touches the database; ``ProviderStore`` asks these functions what
to write and writes it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from marketlink.models import User
from marketlink.services.errors import (
    ConflictError,
    ForbiddenError,
    NotAuthenticatedError,
    ValidationError,
)

PROVIDER_STATUSES = ("pending", "active", "disabled")
INITIAL_STATUS = "pending"
PUBLIC_LISTING_STATUS = "active"


@dataclass(frozen=True)
class Transition:
    action: str
    target: str
    audit_type: str
    allowed_from: FrozenSet[str] = frozenset(PROVIDER_STATUSES)
    requires_reason: bool = False


TRANSITIONS: Dict[str, Transition] = {
    "approve": Transition("approve", "active", "APPROVE", allowed_from=frozenset({"pending"})),
    "disable": Transition("disable", "disabled", "DISABLE", requires_reason=True),
    "enable": Transition("enable", "active", "ENABLE"),
    "pending": Transition("pending", "pending", "EDIT"),
}


@dataclass(frozen=True)
class StatusChange:
    status: str
    disabled_reason: Optional[str]
    audit_type: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def require_admin(actor: Optional[User]) -> User:
    if actor is None:
        raise NotAuthenticatedError("Not authenticated")
    if actor.role != "admin":
        raise ForbiddenError("Forbidden")
    return actor


def normalize_reason(reason: Optional[str]) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("A reason is required to disable a provider")
    return cleaned


def check_status(value: str) -> str:
    status = (value or "").strip().lower()
    if status not in PROVIDER_STATUSES:
        raise ValidationError("Invalid status. Allowed: pending, active, disabled")
    return status


def plan_transition(action: str, current_status: str, reason: Optional[str] = None) -> StatusChange:
    transition = TRANSITIONS.get(action)
    if transition is None:
        raise ValidationError(f"Unknown moderation action: {action}")

    cleaned_reason = normalize_reason(reason) if transition.requires_reason else None
    if current_status not in transition.allowed_from:
        raise ConflictError(f"Provider is {current_status}; only pending providers can be approved")

    metadata: Dict[str, Any] = {"from": current_status, "to": transition.target}
    if cleaned_reason is not None:
        metadata["reason"] = cleaned_reason
    return StatusChange(
        status=transition.target,
        disabled_reason=cleaned_reason,
        audit_type=transition.audit_type,
        metadata=metadata,
    )


def verify_audit_type(verified: bool) -> str:
    return "VERIFY_ON" if verified else "VERIFY_OFF"


def resolve_status_edit(
    current_status: str,
    current_reason: Optional[str],
    *,
    status: Optional[str] = None,
    disabled_reason: Optional[str] = None,
    reason_given: bool = False,
) -> Tuple[str, Optional[str]]:
    """Return the (status, disabled_reason) pair a direct edit should store."""
    target = check_status(status) if status is not None else current_status
    given = (disabled_reason or "").strip()

    if target != "disabled":
        if reason_given and given:
            raise ValidationError("disabledReason is only allowed when status is disabled")
        return target, None

    if reason_given:
        reason = given
    else:
        reason = (current_reason or "").strip() if current_status == "disabled" else ""
    if not reason:
        raise ValidationError("disabledReason is required when status is disabled")
    return target, reason


def initial_status(status: Optional[str], disabled_reason: Optional[str]) -> Tuple[str, Optional[str]]:
    """Status pair for a brand-new record (seed and import paths may start active)."""
    return resolve_status_edit(
        INITIAL_STATUS,
        None,
        status=status,
        disabled_reason=disabled_reason,
        reason_given=disabled_reason is not None,
    )


def can_view(status: str, owner_id: Optional[str], viewer: Optional[User]) -> bool:
    """Per-record read rule used by detail lookups.

    Active records are public. Pending and disabled records are visible to
    their owner only; admins read them through the admin endpoints instead.
    """
    if status == PUBLIC_LISTING_STATUS:
        return True
    if viewer is None or owner_id is None:
        return False
    return viewer.id == owner_id
