"""
Record types shared by the local admin store, the remote store and the chat client.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-05-01T09:30:00.123Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def snake_case(key: str) -> str:
    """``submittedAt`` -> ``submitted_at``; snake_case keys pass through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def record_from_dict(cls: type[T], data: dict[str, Any]) -> T:
    """
    Build a record dataclass from a dict, ignoring unknown keys.

    camelCase keys (as written by the browser site, e.g. ``studentName``) are
    accepted for their snake_case fields; an explicit snake_case key wins.

    Raises TypeError when a required field is missing or `data` is not a dict.
    """
    if not isinstance(data, dict):
        raise TypeError(f"expected dict for {cls.__name__}, got {type(data).__name__}")
    names = {f.name for f in fields(cls)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = key if key in names else snake_case(key)
        if name in names and (name == key or name not in data):
            values[name] = value
    return cls(**values)


def record_to_dict(record: Any) -> dict[str, Any]:
    return asdict(record)


@dataclass
class AdmissionForm:
    """Admission enquiry submitted from the admissions page."""
    id: str
    student_name: str
    parent_name: str
    email: str
    phone: str
    class_applying: str
    date_of_birth: str
    address: str
    previous_school: Optional[str]
    submitted_at: str


@dataclass
class ContactForm:
    """Message submitted from the contact page."""
    id: str
    name: str
    email: str
    phone: str
    subject: str
    message: str
    submitted_at: str


@dataclass
class GalleryImage:
    id: str
    url: str
    title: str
    description: Optional[str]
    category: str
    uploaded_at: str


@dataclass
class SchoolRule:
    id: str
    title: str
    content: str
    category: str
    order_index: int = 0
    is_active: bool = True


@dataclass
class ParentResource:
    id: str
    title: str
    description: Optional[str]
    file_url: str
    file_name: str
    file_type: str
    category: str
    uploaded_at: Optional[str] = None
    is_active: bool = True


@dataclass
class Message:
    """One chat message; `image_url` is set only on generated-image replies."""
    role: str
    content: str
    image_url: Optional[str] = None

    def to_payload(self) -> dict[str, str]:
        """Wire shape expected by the chat endpoint."""
        payload = {"role": self.role, "content": self.content}
        if self.image_url:
            payload["imageUrl"] = self.image_url
        return payload
