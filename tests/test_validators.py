"""Shared validators"""

import pytest

from backoffice.shared.validators import (
    normalize_phone,
    slugify_status_key,
    validate_email,
    validate_required_name,
)


@pytest.mark.parametrize(
    "raw, expected",
    [("012 345 678", "012345678"), ("\t0123\n456 ", "0123456"), ("+60-12", "+60-12"), ("", ""), (None, None)],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize(
    "label, key",
    [("No Answer", "no-answer"), ("  Call back later!! ", "call-back-later"), ("Wrong--Number", "wrong-number"), ("***", "")],
)
def test_slugify_status_key(label, key):
    assert slugify_status_key(label) == key


def test_required_name_is_trimmed():
    assert validate_required_name("  North  ") == "North"


@pytest.mark.parametrize("name", [None, "", "   "])
def test_required_name_rejects_blank(name):
    with pytest.raises(ValueError):
        validate_required_name(name)


def test_email_lowercased():
    assert validate_email(" Ops@Example.COM ") == "ops@example.com"


def test_invalid_email():
    with pytest.raises(ValueError):
        validate_email("not-an-email")
