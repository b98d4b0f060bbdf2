"""
REST client for the hosted data store.

Speaks the PostgREST dialect exposed under ``{base_url}/rest/v1``. Used by the
admin dashboard for the five content tables and by the chat assistant for the
``/@add`` notes table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import requests

from vis_site.config import Settings, settings as default_settings
from vis_site.exceptions import (
    APIConnectionError,
    APITimeoutError,
    MissingAPIKeyError,
    NotFoundError,
    RemoteCallError,
    UnknownTableError,
)
from vis_site.logging_config import get_logger
from vis_site.records import (
    AdmissionForm,
    ContactForm,
    GalleryImage,
    ParentResource,
    SchoolRule,
    record_from_dict,
)

logger = get_logger(__name__)

SERVICE_NAME = "data-store"

ADMISSION_FORMS = "admission_forms"
CONTACT_FORMS = "contact_forms"
GALLERY_IMAGES = "gallery_images"
SCHOOL_RULES = "school_rules"
PARENT_RESOURCES = "parent_resources"
NOTES = "vis_ai_data"


@dataclass(frozen=True)
class TableSpec:
    order_by: Optional[str]
    ascending: bool
    record_type: Optional[type]


TABLES: dict[str, TableSpec] = {
    ADMISSION_FORMS: TableSpec("submitted_at", False, AdmissionForm),
    CONTACT_FORMS: TableSpec("submitted_at", False, ContactForm),
    GALLERY_IMAGES: TableSpec("uploaded_at", False, GalleryImage),
    SCHOOL_RULES: TableSpec("order_index", True, SchoolRule),
    PARENT_RESOURCES: TableSpec("uploaded_at", False, ParentResource),
    NOTES: TableSpec(None, True, None),
}


def _table_spec(table: str) -> TableSpec:
    spec = TABLES.get(table)
    if spec is None:
        raise UnknownTableError(table)
    return spec


class RemoteStore:
    """
    Insert / select / update / delete against the hosted tables.

    Example:
        store = RemoteStore.from_settings()
        rules = store.select("school_rules")
        store.delete("gallery_images", image_id)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, cfg: Settings | None = None, *, session: Optional[requests.Session] = None) -> "RemoteStore":
        cfg = cfg or default_settings
        api_key = cfg.supabase_publishable_key
        if not api_key:
            raise MissingAPIKeyError("supabase", env_var="VITE_SUPABASE_PUBLISHABLE_KEY")
        return cls(cfg.supabase_url, api_key, session=session)

    def _headers(self, *, representation: bool = False) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if representation:
            headers["Prefer"] = "return=representation"
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, table: str, **kwargs: Any) -> Any:
        try:
            response = self.session.request(method, self._url(table), **kwargs)
        except requests.Timeout as e:
            raise APITimeoutError(SERVICE_NAME) from e
        except requests.ConnectionError as e:
            raise APIConnectionError(SERVICE_NAME, reason=str(e)) from e
        except requests.RequestException as e:
            raise RemoteCallError(f"{method} {table} failed", service=SERVICE_NAME) from e

        if response.status_code >= 400:
            logger.warning(
                "Data store rejected request",
                extra={"method": method, "table": table, "status_code": response.status_code},
            )
            raise RemoteCallError(
                f"{method} {table} failed",
                service=SERVICE_NAME,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except (ValueError, RecursionError) as e:
            raise RemoteCallError(f"{method} {table} returned invalid JSON", service=SERVICE_NAME) from e

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored (with server-side id and timestamps)."""
        _table_spec(table)
        data = self._request("POST", table, json=row, headers=self._headers(representation=True))
        if isinstance(data, list):
            return data[0] if data else {}
        return data or {}

    def select(
        self,
        table: str,
        *,
        order_by: Optional[str] = None,
        ascending: Optional[bool] = None,
    ) -> list[dict[str, Any]]:
        """All rows of `table`, ordered by the table's default column unless overridden."""
        spec = _table_spec(table)
        column = order_by or spec.order_by
        params = {"select": "*"}
        if column:
            direction = spec.ascending if ascending is None else ascending
            params["order"] = f"{column}.{'asc' if direction else 'desc'}"
        data = self._request("GET", table, params=params, headers=self._headers())
        return list(data or [])

    def update(self, table: str, row_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Patch one row by id and return it; NotFoundError when no row matched."""
        _table_spec(table)
        data = self._request(
            "PATCH",
            table,
            params={"id": f"eq.{row_id}"},
            json=changes,
            headers=self._headers(representation=True),
        )
        if isinstance(data, list):
            if not data:
                raise NotFoundError("Row not found", resource_type=table, resource_id=row_id)
            return data[0]
        return data or {}

    def delete(self, table: str, row_id: str) -> None:
        _table_spec(table)
        self._request("DELETE", table, params={"id": f"eq.{row_id}"}, headers=self._headers())

    def fetch_records(self, table: str) -> list[Any]:
        """Like `select` but returns record dataclasses; rows that do not fit are skipped."""
        spec = _table_spec(table)
        rows = self.select(table)
        if spec.record_type is None:
            return rows
        records = []
        for row in rows:
            try:
                records.append(record_from_dict(spec.record_type, row))
            except TypeError as e:
                logger.warning("Skipping malformed %s row: %s", table, e)
        return records
