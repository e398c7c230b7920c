"""Collection API routes: list, delete, rename."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend.params import Target, connection_params, error_response, get_store
from chromadmin.store import CollectionStore

logger = logging.getLogger(__name__)
router = APIRouter()


class DeleteCollectionRequest(BaseModel):
    name: str


class RenameCollectionRequest(BaseModel):
    old_name: str = Field(alias="oldName")
    new_name: str = Field(alias="newName")


@router.get("/collections")
async def list_collections(
    target: Target = Depends(connection_params),
    store: CollectionStore = Depends(get_store),
):
    """Collection names for the sidebar."""
    try:
        collections = await store.fetch_collections(target.connection, target.api_version)
    except Exception as e:
        return error_response(e)
    return [c.name for c in collections]


@router.delete("/collections")
async def delete_collection(
    body: DeleteCollectionRequest,
    target: Target = Depends(connection_params),
    store: CollectionStore = Depends(get_store),
):
    try:
        result = await store.delete_collection(target.connection, body.name, target.api_version)
    except Exception as e:
        return error_response(e)
    return result.model_dump()


@router.patch("/collections")
async def rename_collection(
    body: RenameCollectionRequest,
    target: Target = Depends(connection_params),
    store: CollectionStore = Depends(get_store),
):
    """Rename by copy; on failure both collections may exist and need manual cleanup."""
    try:
        result = await store.rename_collection(
            target.connection, body.old_name, body.new_name, target.api_version
        )
    except Exception as e:
        return error_response(e)
    return {"success": result.success, "newName": result.new_name}
