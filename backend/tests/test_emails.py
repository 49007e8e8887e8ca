import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from marketlink.services.emails import canonical_email, is_valid_email, require_email
from marketlink.services.errors import ValidationError


def test_canonical_email_only_trims_and_lowercases():
    assert canonical_email("  Owner@Example.COM ") == "owner@example.com"
    assert canonical_email(None) == ""
    assert canonical_email("not-an-email") == "not-an-email"


def test_is_valid_email():
    assert is_valid_email(" Owner@Example.com ")
    for value in (None, "", "owner", "owner@example", "a b@example.com", "@example.com"):
        assert not is_valid_email(value)


def test_require_email_returns_canonical_form_or_raises():
    assert require_email("Owner@Example.com") == "owner@example.com"
    with pytest.raises(ValidationError) as excinfo:
        require_email("owner@example")
    assert str(excinfo.value) == "A valid email is required"
    with pytest.raises(ValidationError) as custom:
        require_email("", message="valid email is required")
    assert str(custom.value) == "valid email is required"
