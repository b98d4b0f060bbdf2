"""
Tests for vis_site.remote_store module.

A mocked requests session stands in for the hosted REST endpoint.
"""

from unittest import mock

import pytest
import requests

from vis_site.config import Settings
from vis_site.exceptions import (
    APIConnectionError,
    APITimeoutError,
    MissingAPIKeyError,
    NotFoundError,
    RemoteCallError,
    UnknownTableError,
)
from vis_site.records import SchoolRule
from vis_site.remote_store import NOTES, SCHOOL_RULES, RemoteStore


def _response(status_code=200, json_data=None, content=b"x"):
    response = mock.MagicMock()
    response.status_code = status_code
    response.content = content
    response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    return mock.MagicMock()


@pytest.fixture
def store(session):
    return RemoteStore("https://proj.example.co/", "anon-key", session=session)


class TestRemoteStore:
    """Tests for RemoteStore class."""

    def test_from_settings_requires_key(self, monkeypatch):
        monkeypatch.delenv("VITE_SUPABASE_PUBLISHABLE_KEY", raising=False)
        monkeypatch.delenv("SUPABASE_PUBLISHABLE_KEY", raising=False)
        with pytest.raises(MissingAPIKeyError):
            RemoteStore.from_settings(Settings())

    def test_insert_returns_stored_row(self, store, session):
        session.request.return_value = _response(201, [{"id": "n1", "content": "hello"}])

        row = store.insert(NOTES, {"content": "hello"})

        assert row == {"id": "n1", "content": "hello"}
        method, url = session.request.call_args[0]
        kwargs = session.request.call_args[1]
        assert method == "POST"
        assert url == "https://proj.example.co/rest/v1/vis_ai_data"
        assert kwargs["json"] == {"content": "hello"}
        assert kwargs["headers"]["apikey"] == "anon-key"
        assert kwargs["headers"]["Prefer"] == "return=representation"

    def test_select_uses_default_order(self, store, session):
        session.request.return_value = _response(200, [])
        store.select(SCHOOL_RULES)
        assert session.request.call_args[1]["params"] == {"select": "*", "order": "order_index.asc"}

    def test_select_order_override(self, store, session):
        session.request.return_value = _response(200, [])
        store.select("admission_forms", order_by="student_name", ascending=True)
        assert session.request.call_args[1]["params"]["order"] == "student_name.asc"

    def test_submissions_newest_first(self, store, session):
        session.request.return_value = _response(200, [])
        store.select("contact_forms")
        assert session.request.call_args[1]["params"]["order"] == "submitted_at.desc"

    def test_update_and_delete_filter_by_id(self, store, session):
        session.request.return_value = _response(200, [{"id": "r1", "title": "New"}])
        assert store.update(SCHOOL_RULES, "r1", {"title": "New"}) == {"id": "r1", "title": "New"}
        assert session.request.call_args[1]["params"] == {"id": "eq.r1"}

        session.request.return_value = _response(204, None, content=b"")
        assert store.delete("gallery_images", "g1") is None
        assert session.request.call_args[0][0] == "DELETE"
        assert session.request.call_args[1]["params"] == {"id": "eq.g1"}

    def test_unknown_table_rejected(self, store, session):
        with pytest.raises(UnknownTableError):
            store.select("users")
        session.request.assert_not_called()

    def test_error_status_raises(self, store, session):
        session.request.return_value = _response(401, {"message": "JWT expired"})
        with pytest.raises(RemoteCallError) as exc_info:
            store.select(SCHOOL_RULES)
        assert exc_info.value.status_code == 401

    def test_timeout_mapped(self, store, session):
        session.request.side_effect = requests.Timeout()
        with pytest.raises(APITimeoutError):
            store.select(SCHOOL_RULES)

    def test_connection_error_mapped(self, store, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(APIConnectionError):
            store.insert(NOTES, {"content": "x"})

    def test_invalid_json_raises(self, store, session):
        response = _response(200)
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response
        with pytest.raises(RemoteCallError):
            store.select(SCHOOL_RULES)

    def test_fetch_records_skips_malformed_rows(self, store, session):
        session.request.return_value = _response(
            200,
            [
                {"id": "r1", "title": "Be on time", "content": "...", "category": "attendance", "order_index": 1},
                {"id": "r2"},
            ],
        )
        records = store.fetch_records(SCHOOL_RULES)
        assert records == [SchoolRule(id="r1", title="Be on time", content="...", category="attendance", order_index=1)]

    def test_update_of_missing_row_raises_not_found(self, store, session):
        session.request.return_value = _response(200, [])
        with pytest.raises(NotFoundError):
            store.update(SCHOOL_RULES, "gone", {"title": "x"})
