"""
Admin dashboard over the hosted tables.

Lists submissions, gallery images, school rules and parent resources, and
performs the add / edit / delete actions of the admin page. Also provides the
read-only groupings used by the public rules and parents pages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from vis_site.config import GALLERY_CATEGORIES, RESOURCE_CATEGORIES, RULE_CATEGORIES
from vis_site.exceptions import ValidationError
from vis_site.logging_config import log_event
from vis_site.records import AdmissionForm, ContactForm, GalleryImage, ParentResource, SchoolRule, record_from_dict
from vis_site.remote_store import (
    ADMISSION_FORMS,
    CONTACT_FORMS,
    GALLERY_IMAGES,
    PARENT_RESOURCES,
    SCHOOL_RULES,
    RemoteStore,
)


@dataclass
class DashboardData:
    admission_forms: list[AdmissionForm] = field(default_factory=list)
    contact_forms: list[ContactForm] = field(default_factory=list)
    gallery_images: list[GalleryImage] = field(default_factory=list)
    school_rules: list[SchoolRule] = field(default_factory=list)
    parent_resources: list[ParentResource] = field(default_factory=list)

    @property
    def next_rule_order_index(self) -> int:
        return len(self.school_rules)


def _require(value: Optional[str], message: str) -> str:
    if not value or not value.strip():
        raise ValidationError(message)
    return value.strip()


def _require_category(category: str, allowed: frozenset[str]) -> str:
    if category not in allowed:
        raise ValidationError(f"must be one of {', '.join(sorted(allowed))}", field="category")
    return category


class AdminDashboard:
    """
    Remote admin actions, one method per button of the admin page.

    Example:
        dashboard = AdminDashboard(RemoteStore.from_settings())
        data = dashboard.load()
        dashboard.save_rule(title="Be punctual", content="...", category="attendance")
    """

    def __init__(self, remote_store: RemoteStore) -> None:
        self.remote_store = remote_store

    def load(self) -> DashboardData:
        """All five tables, each in its default order."""
        store = self.remote_store
        return DashboardData(
            admission_forms=store.fetch_records(ADMISSION_FORMS),
            contact_forms=store.fetch_records(CONTACT_FORMS),
            gallery_images=store.fetch_records(GALLERY_IMAGES),
            school_rules=store.fetch_records(SCHOOL_RULES),
            parent_resources=store.fetch_records(PARENT_RESOURCES),
        )

    # Gallery

    def add_gallery_image(
        self,
        *,
        title: str,
        url: str,
        category: str = "campus",
        description: Optional[str] = None,
    ) -> GalleryImage:
        if not (title or "").strip() or not (url or "").strip():
            raise ValidationError("Please provide a title and select an image.")
        row = self.remote_store.insert(
            GALLERY_IMAGES,
            {
                "title": title.strip(),
                "url": url.strip(),
                "category": _require_category(category, GALLERY_CATEGORIES),
                "description": description or None,
            },
        )
        log_event("gallery_image_added", category=category)
        return record_from_dict(GalleryImage, row)

    def delete_gallery_image(self, image_id: str) -> None:
        self.remote_store.delete(GALLERY_IMAGES, image_id)

    # School rules

    def save_rule(
        self,
        *,
        title: str,
        content: str,
        category: str = "general",
        order_index: int = 0,
        rule_id: Optional[str] = None,
    ) -> SchoolRule:
        """Insert a new active rule, or update `rule_id` when given."""
        if not (title or "").strip() or not (content or "").strip():
            raise ValidationError("Please fill all required fields.")
        changes = {
            "title": title.strip(),
            "content": content.strip(),
            "category": _require_category(category, RULE_CATEGORIES),
            "order_index": int(order_index),
        }
        if rule_id:
            row = self.remote_store.update(SCHOOL_RULES, rule_id, changes)
            log_event("school_rule_updated", rule_id=rule_id)
        else:
            row = self.remote_store.insert(SCHOOL_RULES, {**changes, "is_active": True})
            log_event("school_rule_added", category=category)
        return record_from_dict(SchoolRule, row)

    def delete_rule(self, rule_id: str) -> None:
        self.remote_store.delete(SCHOOL_RULES, rule_id)

    # Parent resources

    def add_resource(
        self,
        *,
        title: str,
        file_url: str,
        file_name: str,
        file_type: str = "",
        category: str = "general",
        description: Optional[str] = None,
    ) -> ParentResource:
        if not (title or "").strip() or not (file_url or "").strip():
            raise ValidationError("Please provide a title and select a file.")
        row = self.remote_store.insert(
            PARENT_RESOURCES,
            {
                "title": title.strip(),
                "description": description or None,
                "category": _require_category(category, RESOURCE_CATEGORIES),
                "file_url": file_url.strip(),
                "file_name": _require(file_name, "Please provide a file name."),
                "file_type": file_type,
                "is_active": True,
            },
        )
        log_event("parent_resource_added", category=category)
        return record_from_dict(ParentResource, row)

    def delete_resource(self, resource_id: str) -> None:
        self.remote_store.delete(PARENT_RESOURCES, resource_id)

    # Submissions

    def delete_admission_form(self, form_id: str) -> None:
        self.remote_store.delete(ADMISSION_FORMS, form_id)

    def delete_contact_form(self, form_id: str) -> None:
        self.remote_store.delete(CONTACT_FORMS, form_id)


def group_rules_by_category(rules: list[SchoolRule]) -> dict[str, list[SchoolRule]]:
    """Rules keyed by category in first-seen order; rule order is kept within a group."""
    grouped: dict[str, list[SchoolRule]] = {}
    for rule in rules:
        grouped.setdefault(rule.category, []).append(rule)
    return grouped


def resources_in_category(resources: list[ParentResource], category: str) -> list[ParentResource]:
    return [resource for resource in resources if resource.category == category]
