"""
Page renderers for Streamlit UI.
"""

from __future__ import annotations

import logging
from typing import Callable

import streamlit as st

from vis_site.chat_client import ChatConversation
from vis_site.config import GALLERY_CATEGORIES, RESOURCE_CATEGORIES, RULE_CATEGORIES
from vis_site.csv_export import export_filename, records_to_csv
from vis_site.dashboard import AdminDashboard, DashboardData, group_rules_by_category, resources_in_category
from vis_site.exceptions import VisSiteError
from vis_site.records import Message, record_to_dict
from vis_site.ui.session import get_admin_store, get_chat_client, get_config_error, get_dashboard

logger = logging.getLogger(__name__)


def _render_message(message: Message) -> None:
    st.markdown(message.content or "…")
    if message.image_url:
        st.image(message.image_url)


def _show_config_error() -> None:
    st.error(f"This page is unavailable: {get_config_error() or 'backend is not configured'}.")


def _run_action(action: Callable[[], object], success: str) -> bool:
    """Run one dashboard action, reporting the outcome like a toast."""
    try:
        action()
    except VisSiteError as e:
        logger.warning("Dashboard action failed: %s", e)
        st.error(e.message)
        return False
    st.toast(success)
    return True


def render_admin_gate() -> None:
    """Sidebar toggle: password form when locked, exit button when unlocked."""
    store = get_admin_store()
    if store.is_admin:
        st.sidebar.success("Admin mode enabled")
        if st.sidebar.button("Exit admin mode"):
            store.lock()
            st.rerun()
        return

    with st.sidebar.form("admin_gate", clear_on_submit=True):
        password = st.text_input("Admin password", type="password")
        submitted = st.form_submit_button("Unlock")
    if submitted:
        if store.unlock(password):
            st.rerun()
        else:
            st.sidebar.error("Invalid password")


def render_assistant_page() -> None:
    st.title("VIS-AI")
    st.caption("Ask about any subject. Use /@add <note> to save a note or /@image <prompt> for a picture.")

    client = get_chat_client()
    if client is None:
        _show_config_error()
        return

    for message in client.conversation.messages:
        with st.chat_message(message.role):
            _render_message(message)

    prompt = st.chat_input("Type your message...", disabled=client.is_loading)
    if not prompt:
        return

    with st.chat_message("user"):
        st.markdown(prompt)
    with st.chat_message("assistant"):
        placeholder = st.empty()

    def _redraw(conversation: ChatConversation) -> None:
        last = conversation.messages[-1]
        with placeholder.container():
            _render_message(last)

    client.on_update = _redraw
    try:
        client.send(prompt)
    finally:
        client.on_update = None
    st.rerun()


def render_contact_page() -> None:
    st.title("Contact Us")
    with st.form("contact_form", clear_on_submit=True):
        name = st.text_input("Name")
        email = st.text_input("Email")
        phone = st.text_input("Phone")
        subject = st.text_input("Subject")
        message = st.text_area("Message")
        submitted = st.form_submit_button("Send message")
    if submitted:
        if not (name and email and message):
            st.error("Please fill in your name, email and message.")
            return
        get_admin_store().add_contact_form(name=name, email=email, phone=phone, subject=subject, message=message)
        st.success("Thank you! We'll get back to you soon.")


def render_admissions_page() -> None:
    st.title("Admissions")
    with st.form("admission_form", clear_on_submit=True):
        student_name = st.text_input("Student name")
        parent_name = st.text_input("Parent name")
        email = st.text_input("Email")
        phone = st.text_input("Phone")
        class_applying = st.text_input("Class applying for")
        date_of_birth = st.date_input("Date of birth", value=None)
        address = st.text_area("Address")
        previous_school = st.text_input("Previous school (optional)")
        submitted = st.form_submit_button("Submit application")
    if submitted:
        if not (student_name and parent_name and email and class_applying):
            st.error("Please fill in all required fields.")
            return
        get_admin_store().add_admission_form(
            student_name=student_name,
            parent_name=parent_name,
            email=email,
            phone=phone,
            class_applying=class_applying,
            date_of_birth=date_of_birth.isoformat() if date_of_birth else "",
            address=address,
            previous_school=previous_school or None,
        )
        st.success("Application submitted successfully!")


def _load_remote() -> tuple[AdminDashboard | None, DashboardData | None]:
    dashboard = get_dashboard()
    if dashboard is None:
        _show_config_error()
        return None, None
    try:
        return dashboard, dashboard.load()
    except VisSiteError as e:
        logger.warning("Failed to load hosted tables: %s", e)
        st.error(f"Could not load data: {e.message}")
        return dashboard, None


def render_rules_page() -> None:
    st.title("School Rules")
    _, data = _load_remote()
    if data is None:
        return
    if not data.school_rules:
        st.info("No rules have been published yet.")
        return
    for category, rules in group_rules_by_category(data.school_rules).items():
        st.subheader(category.replace("-", " ").title())
        for index, rule in enumerate(rules, start=1):
            st.markdown(f"**{index}. {rule.title}**")
            st.write(rule.content)


def render_parents_page() -> None:
    st.title("Parents Corner")
    _, data = _load_remote()
    if data is None:
        return
    for category in sorted(RESOURCE_CATEGORIES):
        resources = resources_in_category(data.parent_resources, category)
        with st.expander(f"{category.title()} ({len(resources)})"):
            if not resources:
                st.caption("No resources available yet.")
            for resource in resources:
                st.markdown(f"[{resource.title}]({resource.file_url}) · {resource.file_name}")
                if resource.description:
                    st.caption(resource.description)


def _render_collection(title: str, records: list, *, export_name: str, on_delete) -> None:
    st.subheader(f"{title} ({len(records)})")
    if not records:
        st.info(f"No {title.lower()} yet.")
        return
    st.download_button(
        "Export CSV",
        data=records_to_csv(records),
        file_name=export_filename(export_name),
        mime="text/csv",
        key=f"export_{export_name}",
    )
    for record in records:
        with st.expander(getattr(record, "title", None) or getattr(record, "student_name", None) or record.name):
            st.json(record_to_dict(record))
            if st.button("Delete", key=f"delete_{export_name}_{record.id}"):
                on_delete(record.id)
                st.rerun()


def _rule_form(dashboard: AdminDashboard, data: DashboardData) -> None:
    editing = {rule.id: rule for rule in data.school_rules}
    choice = st.selectbox(
        "Rule",
        ["New rule", *editing],
        format_func=lambda key: key if key == "New rule" else editing[key].title,
    )
    rule = editing.get(choice)
    categories = sorted(RULE_CATEGORIES)
    with st.form("rule_form", clear_on_submit=True):
        title = st.text_input("Title", value=rule.title if rule else "")
        content = st.text_area("Content", value=rule.content if rule else "")
        category = st.selectbox(
            "Category", categories, index=categories.index(rule.category) if rule and rule.category in categories else 0
        )
        order_index = st.number_input(
            "Order", min_value=0, step=1, value=rule.order_index if rule else data.next_rule_order_index
        )
        submitted = st.form_submit_button("Update rule" if rule else "Add rule")
    if submitted and _run_action(
        lambda: dashboard.save_rule(
            title=title,
            content=content,
            category=category,
            order_index=int(order_index),
            rule_id=rule.id if rule else None,
        ),
        "Rule updated successfully!" if rule else "Rule added successfully!",
    ):
        st.rerun()


def render_dashboard_page() -> None:
    """Admin dashboard over the hosted tables."""
    if not get_admin_store().is_admin:
        st.warning("Admin mode is required to view this page.")
        return

    st.title("Admin Dashboard")
    dashboard, data = _load_remote()
    if dashboard is None or data is None:
        return

    def _delete(action: Callable[[str], None], message: str) -> Callable[[str], None]:
        return lambda row_id: _run_action(lambda: action(row_id), message)

    tabs = st.tabs(["Admissions", "Contacts", "Gallery", "Rules", "Resources"])
    with tabs[0]:
        _render_collection(
            "Admission forms",
            data.admission_forms,
            export_name="admissions",
            on_delete=_delete(dashboard.delete_admission_form, "Admission form deleted"),
        )
    with tabs[1]:
        _render_collection(
            "Contact forms",
            data.contact_forms,
            export_name="contacts",
            on_delete=_delete(dashboard.delete_contact_form, "Contact form deleted"),
        )
    with tabs[2]:
        with st.form("remote_gallery_upload", clear_on_submit=True):
            title = st.text_input("Title")
            url = st.text_input("Image URL")
            category = st.selectbox("Category", sorted(GALLERY_CATEGORIES))
            description = st.text_area("Description")
            submitted = st.form_submit_button("Upload image")
        if submitted and _run_action(
            lambda: dashboard.add_gallery_image(title=title, url=url, category=category, description=description),
            "Image uploaded successfully!",
        ):
            st.rerun()
        _render_collection(
            "Gallery images",
            data.gallery_images,
            export_name="gallery",
            on_delete=_delete(dashboard.delete_gallery_image, "Image deleted"),
        )
    with tabs[3]:
        _rule_form(dashboard, data)
        _render_collection(
            "School rules", data.school_rules, export_name="rules", on_delete=_delete(dashboard.delete_rule, "Rule deleted")
        )
    with tabs[4]:
        with st.form("resource_upload", clear_on_submit=True):
            title = st.text_input("Title")
            file_url = st.text_input("File URL")
            file_name = st.text_input("File name")
            file_type = st.text_input("File type", value="application/pdf")
            category = st.selectbox("Category", sorted(RESOURCE_CATEGORIES))
            description = st.text_area("Description")
            submitted = st.form_submit_button("Upload resource")
        if submitted and _run_action(
            lambda: dashboard.add_resource(
                title=title,
                file_url=file_url,
                file_name=file_name,
                file_type=file_type,
                category=category,
                description=description,
            ),
            "Resource uploaded successfully!",
        ):
            st.rerun()
        _render_collection(
            "Parent resources",
            data.parent_resources,
            export_name="resources",
            on_delete=_delete(dashboard.delete_resource, "Resource deleted"),
        )


def render_local_admin_page() -> None:
    """Legacy admin view over the locally stored submissions."""
    store = get_admin_store()
    if not store.is_admin:
        st.warning("Admin mode is required to view this page.")
        return

    store.reload()
    st.title("Local Submissions")
    admissions_tab, contacts_tab, gallery_tab = st.tabs(["Admissions", "Contacts", "Gallery"])
    with admissions_tab:
        _render_collection(
            "Admission forms", store.admission_forms, export_name="admissions", on_delete=store.delete_admission_form
        )
    with contacts_tab:
        _render_collection(
            "Contact forms", store.contact_forms, export_name="contacts", on_delete=store.delete_contact_form
        )
    with gallery_tab:
        with st.form("gallery_upload", clear_on_submit=True):
            title = st.text_input("Title")
            url = st.text_input("Image URL")
            category = st.selectbox("Category", sorted(GALLERY_CATEGORIES))
            description = st.text_area("Description")
            submitted = st.form_submit_button("Add image")
        if submitted:
            if not (title and url):
                st.error("Please provide a title and an image URL.")
            else:
                store.add_gallery_image(url=url, title=title, category=category, description=description or None)
                st.rerun()
        _render_collection("Gallery images", store.gallery_images, export_name="gallery", on_delete=store.delete_gallery_image)
