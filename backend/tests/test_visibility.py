import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from marketlink.models import User
from marketlink.services import visibility
from marketlink.services.errors import (
    ConflictError,
    ForbiddenError,
    NotAuthenticatedError,
    ValidationError,
)

ADMIN = User(id="usr_admin", email="admin@example.com", role="admin")
OWNER = User(id="usr_owner", email="owner@example.com", role="provider")
STRANGER = User(id="usr_other", email="other@example.com", role="provider")


def test_require_admin():
    assert visibility.require_admin(ADMIN) is ADMIN
    with pytest.raises(NotAuthenticatedError):
        visibility.require_admin(None)
    with pytest.raises(ForbiddenError):
        visibility.require_admin(OWNER)


def test_approve_only_from_pending():
    change = visibility.plan_transition("approve", "pending")
    assert change.status == "active"
    assert change.disabled_reason is None
    assert change.audit_type == "APPROVE"
    assert change.metadata == {"from": "pending", "to": "active"}

    for status in ("active", "disabled"):
        with pytest.raises(ConflictError):
            visibility.plan_transition("approve", status)


def test_disable_requires_reason_and_records_it():
    change = visibility.plan_transition("disable", "active", "  spam listing ")
    assert change.status == "disabled"
    assert change.disabled_reason == "spam listing"
    assert change.metadata == {"from": "active", "to": "disabled", "reason": "spam listing"}

    for reason in (None, "", "   "):
        with pytest.raises(ValidationError):
            visibility.plan_transition("disable", "active", reason)


def test_enable_and_pending_clear_reason():
    enabled = visibility.plan_transition("enable", "disabled")
    assert (enabled.status, enabled.disabled_reason, enabled.audit_type) == ("active", None, "ENABLE")

    pending = visibility.plan_transition("pending", "disabled")
    assert (pending.status, pending.disabled_reason, pending.audit_type) == ("pending", None, "EDIT")


def test_unknown_action_is_rejected():
    with pytest.raises(ValidationError):
        visibility.plan_transition("archive", "active")


def test_verify_audit_type():
    assert visibility.verify_audit_type(True) == "VERIFY_ON"
    assert visibility.verify_audit_type(False) == "VERIFY_OFF"


def test_status_edit_keeps_reason_only_when_disabled():
    assert visibility.resolve_status_edit("disabled", "spam", status="active") == ("active", None)
    assert visibility.resolve_status_edit("active", None, status="disabled", disabled_reason="dup", reason_given=True) == (
        "disabled",
        "dup",
    )
    # Staying disabled keeps the stored reason.
    assert visibility.resolve_status_edit("disabled", "spam") == ("disabled", "spam")
    # An explicit empty reason clears it on a non-disabled record.
    assert visibility.resolve_status_edit("active", None, disabled_reason="", reason_given=True) == ("active", None)


def test_status_edit_rejects_broken_reason_combinations():
    with pytest.raises(ValidationError):
        visibility.resolve_status_edit("active", None, status="disabled")
    with pytest.raises(ValidationError):
        visibility.resolve_status_edit("disabled", "spam", disabled_reason=" ", reason_given=True)
    with pytest.raises(ValidationError):
        visibility.resolve_status_edit("active", None, disabled_reason="nope", reason_given=True)
    with pytest.raises(ValidationError):
        visibility.resolve_status_edit("active", None, status="archived")


def test_initial_status():
    assert visibility.initial_status(None, None) == ("pending", None)
    assert visibility.initial_status("active", None) == ("active", None)
    assert visibility.initial_status("disabled", "imported closed") == ("disabled", "imported closed")
    with pytest.raises(ValidationError):
        visibility.initial_status("disabled", None)


def test_can_view():
    assert visibility.can_view("active", None, None)
    assert visibility.can_view("active", OWNER.id, STRANGER)
    for status in ("pending", "disabled"):
        assert visibility.can_view(status, OWNER.id, OWNER)
        assert not visibility.can_view(status, OWNER.id, STRANGER)
        assert not visibility.can_view(status, OWNER.id, None)
        assert not visibility.can_view(status, None, STRANGER)
        assert not visibility.can_view(status, OWNER.id, ADMIN)
