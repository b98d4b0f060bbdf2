"""
Tests for vis_site.records module.
"""

import pytest

from vis_site.records import ContactForm, Message, record_from_dict, snake_case, utc_now_iso


class TestRecordFromDict:
    """Tests for record_from_dict."""

    def test_snake_case_keys(self):
        form = record_from_dict(
            ContactForm,
            {"id": "c1", "name": "N", "email": "e", "phone": "p", "subject": "s", "message": "m",
             "submitted_at": "t", "extra": 1},
        )
        assert form.submitted_at == "t"

    def test_camel_case_keys(self):
        form = record_from_dict(
            ContactForm,
            {"id": "c1", "name": "N", "email": "e", "phone": "p", "subject": "s", "message": "m", "submittedAt": "t"},
        )
        assert form.submitted_at == "t"

    def test_snake_case_wins_over_camel_case(self):
        form = record_from_dict(
            ContactForm,
            {"id": "c1", "name": "N", "email": "e", "phone": "p", "subject": "s", "message": "m",
             "submittedAt": "camel", "submitted_at": "snake"},
        )
        assert form.submitted_at == "snake"

    def test_missing_field_raises(self):
        with pytest.raises(TypeError):
            record_from_dict(ContactForm, {"id": "c1"})

    def test_non_dict_raises(self):
        with pytest.raises(TypeError):
            record_from_dict(ContactForm, ["c1"])


def test_snake_case():
    assert snake_case("classApplying") == "class_applying"
    assert snake_case("order_index") == "order_index"


def test_utc_now_iso_format():
    stamp = utc_now_iso()
    assert stamp.endswith("Z")
    assert len(stamp.split(".")[1]) == 4


def test_message_payload():
    assert Message(role="user", content="hi").to_payload() == {"role": "user", "content": "hi"}
