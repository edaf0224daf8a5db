"""
FastAPI router for catalog endpoints.

Route functions are plain `def`: FastAPI runs them in its thread pool,
and the store is thread-safe.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from . import schemas, service
from .store import DocumentStore

router = APIRouter()


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


@router.get("/api/data")
def get_data(store: DocumentStore = Depends(get_store)) -> dict:
    return service.get_catalog(store)


@router.post("/api/data")
def replace_data(
    request: schemas.ReplaceCatalogRequest,
    store: DocumentStore = Depends(get_store),
) -> dict:
    """
    Replace the whole services map. Last save wins.
    """
    if request.services is None:
        raise HTTPException(status_code=400, detail="Missing 'services' in request body.")

    catalog = service.replace_catalog(store, request.services)
    return {"success": True, "services": catalog["services"]}


@router.get("/api/services/{key}")
def get_service(key: str, store: DocumentStore = Depends(get_store)) -> dict:
    return service.get_service(store, key)


@router.post("/api/services/{key}/sections", status_code=status.HTTP_201_CREATED)
def create_section(
    key: str,
    request: schemas.CreateSectionRequest,
    store: DocumentStore = Depends(get_store),
) -> dict:
    return service.add_section(store, key, request.model_dump())


@router.put("/api/services/{key}/sections/{section_id}")
def update_section(
    key: str,
    section_id: str,
    request: schemas.UpdateSectionRequest,
    store: DocumentStore = Depends(get_store),
) -> dict:
    # Explicit nulls are dropped so they cannot bypass the field constraints.
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    return service.update_section(store, key, section_id, changes)


@router.delete("/api/services/{key}/sections/{section_id}")
def delete_section(
    key: str,
    section_id: str,
    store: DocumentStore = Depends(get_store),
) -> dict:
    service.delete_section(store, key, section_id)
    return {"success": True, "id": section_id}
