"""
Admin session store.

Holds the admin-mode flag for one browser session together with three locally
mirrored collections (admission forms, contact forms, gallery images). Each
collection is written to local storage as a full JSON snapshot after every
mutation and reloaded when the store is created or mutated. The admin flag
lives only in memory and starts as False.

This store is a local-only mirror used by the public pages. It is not kept in
sync with the hosted tables the admin dashboard talks to.
"""

from __future__ import annotations

import json
import secrets
import sqlite3
import threading
import uuid
from dataclasses import asdict
from typing import Generic, Optional, TypeVar

from vis_site.config import settings
from vis_site.exceptions import LocalPersistenceError
from vis_site.logging_config import LogLevel, get_logger, log_event
from vis_site.records import AdmissionForm, ContactForm, GalleryImage, record_from_dict, utc_now_iso
from vis_site.storage import LocalStorage

logger = get_logger(__name__)

ADMISSIONS_KEY = "vis_admissions"
CONTACTS_KEY = "vis_contacts"
GALLERY_KEY = "vis_gallery"

R = TypeVar("R", AdmissionForm, ContactForm, GalleryImage)


# Serializes read-modify-write of snapshots between stores sharing one storage.
_snapshot_lock = threading.Lock()


class _SnapshotCollection(Generic[R]):
    """
    Ordered list of records persisted as a whole under one storage key.

    Several stores may share one storage (one per Streamlit session), so every
    mutation re-reads the stored snapshot before writing it back. Records whose
    write failed are kept in memory and folded into the next snapshot.
    """

    def __init__(self, storage: LocalStorage, key: str, record_type: type[R]) -> None:
        self._storage = storage
        self.key = key
        self.record_type = record_type
        self._unsaved_adds: set[str] = set()
        self._unsaved_deletes: set[str] = set()
        self.items: list[R] = self._read() or []

    def _read(self) -> Optional[list[R]]:
        """Stored records, [] for an absent or corrupt snapshot, None when storage cannot be read."""
        try:
            raw = self._storage.get_item(self.key)
        except (LocalPersistenceError, sqlite3.Error, OSError) as e:
            logger.warning("Failed to read %s snapshot: %s", self.key, e)
            return None
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"snapshot is {type(data).__name__}, not a list")
            return [record_from_dict(self.record_type, item) for item in data]
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning("Discarding corrupt %s snapshot: %s", self.key, e)
            return []

    def refresh(self) -> None:
        """Reload from storage, keeping changes that have not been written yet."""
        stored = self._read()
        if stored is None:
            return
        items = [item for item in stored if item.id not in self._unsaved_deletes]
        known = {item.id for item in items}
        items.extend(item for item in self.items if item.id in self._unsaved_adds and item.id not in known)
        self.items = items

    def persist(self) -> bool:
        """Write the full collection; failures are logged and dropped."""
        try:
            payload = json.dumps([asdict(item) for item in self.items], ensure_ascii=False)
            self._storage.set_item(self.key, payload)
        except (LocalPersistenceError, sqlite3.Error, OSError, TypeError, ValueError) as e:
            logger.warning("Failed to persist %s snapshot: %s", self.key, e)
            return False
        self._unsaved_adds.clear()
        self._unsaved_deletes.clear()
        return True

    def append(self, record: R) -> R:
        with _snapshot_lock:
            self.refresh()
            self.items.append(record)
            self._unsaved_adds.add(record.id)
            self.persist()
        return record

    def delete(self, record_id: str) -> bool:
        with _snapshot_lock:
            self.refresh()
            found = False
            for index, item in enumerate(self.items):
                if item.id == record_id:
                    del self.items[index]
                    self._unsaved_adds.discard(record_id)
                    self._unsaved_deletes.add(record_id)
                    found = True
                    break
            self.persist()
        return found


class AdminSessionStore:
    """
    Admin flag plus locally persisted admission, contact and gallery records.

    Create one per browser session and pass it to whatever needs it:

        store = AdminSessionStore(SQLiteLocalStorage(settings.local_storage_path))
        store.add_contact_form(name="A", email="a@x.org", phone="1", subject="Hi", message="...")
        if store.unlock(password):
            ...
    """

    def __init__(self, storage: LocalStorage, *, admin_password: Optional[str] = None) -> None:
        self._storage = storage
        self._admin_password = admin_password
        self._is_admin = False
        self._admissions: _SnapshotCollection[AdmissionForm] = _SnapshotCollection(storage, ADMISSIONS_KEY, AdmissionForm)
        self._contacts: _SnapshotCollection[ContactForm] = _SnapshotCollection(storage, CONTACTS_KEY, ContactForm)
        self._gallery: _SnapshotCollection[GalleryImage] = _SnapshotCollection(storage, GALLERY_KEY, GalleryImage)

    # ------------------------------------------------------------------
    # Admin gate
    # ------------------------------------------------------------------

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    def set_admin(self, value: bool) -> None:
        """Set the in-memory admin flag. Never persisted."""
        self._is_admin = bool(value)

    def unlock(self, password: str) -> bool:
        """Enable admin mode when `password` matches the configured admin password."""
        expected = self._admin_password if self._admin_password is not None else settings.admin_password
        if secrets.compare_digest(str(password).encode("utf-8"), expected.encode("utf-8")):
            self.set_admin(True)
            log_event("admin_mode_enabled")
            return True
        log_event("admin_unlock_rejected", level=LogLevel.WARNING)
        return False

    def lock(self) -> None:
        if self._is_admin:
            log_event("admin_mode_disabled")
        self.set_admin(False)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    @property
    def admission_forms(self) -> list[AdmissionForm]:
        return list(self._admissions.items)

    @property
    def contact_forms(self) -> list[ContactForm]:
        return list(self._contacts.items)

    @property
    def gallery_images(self) -> list[GalleryImage]:
        return list(self._gallery.items)

    def reload(self) -> None:
        """Pick up records written by other sessions sharing the same storage."""
        with _snapshot_lock:
            for collection in (self._admissions, self._contacts, self._gallery):
                collection.refresh()

    def add_admission_form(
        self,
        *,
        student_name: str,
        parent_name: str,
        email: str,
        phone: str,
        class_applying: str,
        date_of_birth: str,
        address: str,
        previous_school: Optional[str] = None,
    ) -> AdmissionForm:
        form = AdmissionForm(
            id=_new_id(),
            student_name=student_name,
            parent_name=parent_name,
            email=email,
            phone=phone,
            class_applying=class_applying,
            date_of_birth=date_of_birth,
            address=address,
            previous_school=previous_school,
            submitted_at=utc_now_iso(),
        )
        return self._admissions.append(form)

    def add_contact_form(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        subject: str,
        message: str,
    ) -> ContactForm:
        form = ContactForm(
            id=_new_id(),
            name=name,
            email=email,
            phone=phone,
            subject=subject,
            message=message,
            submitted_at=utc_now_iso(),
        )
        return self._contacts.append(form)

    def add_gallery_image(
        self,
        *,
        url: str,
        title: str,
        category: str,
        description: Optional[str] = None,
    ) -> GalleryImage:
        image = GalleryImage(
            id=_new_id(),
            url=url,
            title=title,
            description=description,
            category=category,
            uploaded_at=utc_now_iso(),
        )
        return self._gallery.append(image)

    def delete_admission_form(self, form_id: str) -> bool:
        return self._admissions.delete(form_id)

    def delete_contact_form(self, form_id: str) -> bool:
        return self._contacts.delete(form_id)

    def delete_gallery_image(self, image_id: str) -> bool:
        return self._gallery.delete(image_id)


def _new_id() -> str:
    return str(uuid.uuid4())
