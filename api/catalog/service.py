"""
Catalog business logic.

The store only replaces the whole document. Section-level edits here run
load -> mutate -> save under one process-wide lock so two edits in this
process cannot lose each other's changes. Writers outside this module
(another process, a direct store.save) are not coordinated.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any

from core.errors import SectionNotFound, ServiceNotFound

from .defaults import SERVICE_NAMES
from .store import DocumentStore

logger = logging.getLogger(__name__)

_edit_lock = threading.Lock()

SECTION_DEFAULTS: dict[str, Any] = {
    "name": "",
    "description": "",
    "type": "text",
}


def new_section_id() -> str:
    return uuid.uuid4().hex


def get_catalog(store: DocumentStore) -> dict[str, Any]:
    return store.load()


def with_fixed_services(services: dict[str, Any]) -> dict[str, Any]:
    """
    Return `services` with every fixed service key present.

    Missing fixed keys come back with their default name and no sections;
    unknown keys are kept as given.
    """
    merged = dict(services)
    for key, name in SERVICE_NAMES.items():
        if not isinstance(merged.get(key), dict):
            merged[key] = {"name": name, "sections": []}
    return merged


def replace_catalog(store: DocumentStore, services: dict[str, Any]) -> dict[str, Any]:
    """
    Replace the services map, keeping other top-level keys of the document.
    """
    with _edit_lock:
        catalog = store.load()
        catalog["services"] = with_fixed_services(services)
        store.save(catalog)
    logger.info("catalog_replaced services=%s", len(services))
    return catalog


def _service(catalog: dict[str, Any], key: str) -> dict[str, Any]:
    services = catalog.get("services")
    if not isinstance(services, dict):
        raise ServiceNotFound(f"Service '{key}' not found.")

    service = services.get(key)
    if not isinstance(service, dict):
        raise ServiceNotFound(f"Service '{key}' not found.")

    if not isinstance(service.get("sections"), list):
        service["sections"] = []
    return service


def _section_index(service: dict[str, Any], key: str, section_id: str) -> int:
    for index, section in enumerate(service["sections"]):
        if isinstance(section, dict) and str(section.get("id")) == section_id:
            return index
    raise SectionNotFound(f"Section '{section_id}' not found in service '{key}'.")


def get_service(store: DocumentStore, key: str) -> dict[str, Any]:
    return _service(store.load(), key)


def add_section(store: DocumentStore, key: str, section: dict[str, Any]) -> dict[str, Any]:
    """
    Append a section to a service and return it with its assigned id.

    Any caller-supplied `id` is ignored: ids are assigned here and never reused.
    """
    created = {"id": new_section_id()}
    for field, default in SECTION_DEFAULTS.items():
        value = section.get(field)
        created[field] = value if value is not None else default
    content = section.get("content")
    created["content"] = content if content is not None else []
    # Unknown fields ride along untouched.
    for field, value in section.items():
        if field not in created and field != "id":
            created[field] = value

    with _edit_lock:
        catalog = store.load()
        _service(catalog, key)["sections"].append(created)
        store.save(catalog)

    logger.info("section_added service=%s section_id=%s", key, created["id"])
    return created


def update_section(
    store: DocumentStore,
    key: str,
    section_id: str,
    changes: dict[str, Any],
) -> dict[str, Any]:
    with _edit_lock:
        catalog = store.load()
        service = _service(catalog, key)
        index = _section_index(service, key, section_id)

        updated = dict(service["sections"][index])
        updated.update({field: value for field, value in changes.items() if field != "id"})
        service["sections"][index] = updated
        store.save(catalog)

    logger.info("section_updated service=%s section_id=%s", key, section_id)
    return updated


def delete_section(store: DocumentStore, key: str, section_id: str) -> None:
    with _edit_lock:
        catalog = store.load()
        service = _service(catalog, key)
        index = _section_index(service, key, section_id)
        del service["sections"][index]
        store.save(catalog)

    logger.info("section_deleted service=%s section_id=%s", key, section_id)
