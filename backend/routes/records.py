"""Record API routes: page/detail, query, delete."""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from backend.params import Target, connection_params, error_response, get_store, parse_where
from chromadmin.store import CollectionStore

logger = logging.getLogger(__name__)
router = APIRouter()


class QueryRequest(BaseModel):
    # list of floats -> similarity query; string -> exact id lookup
    query: Union[list[float], str]


class DeleteRecordRequest(BaseModel):
    id: str


@router.get("/collections/{collection_name}/records")
async def get_records(
    collection_name: str,
    page: int = Query(1, ge=1),
    where: Optional[str] = Query(None, description="JSON metadata filter"),
    recordId: Optional[str] = Query(None),
    target: Target = Depends(connection_params),
    store: CollectionStore = Depends(get_store),
):
    """One page of records with the total count, or a single record with its embedding."""
    filt = parse_where(where)
    try:
        if recordId:
            record = await store.fetch_record_detail(
                target.connection, collection_name, recordId, target.api_version
            )
            return {"record": record.model_dump(exclude_unset=True)}

        records = await store.fetch_records(
            target.connection, collection_name, page, filt, target.api_version
        )
        total = await store.count_records(target.connection, collection_name, filt, target.api_version)
    except Exception as e:
        return error_response(e)
    return {
        "total": total,
        "page": page,
        "records": [r.model_dump(exclude_unset=True) for r in records],
    }


@router.post("/collections/{collection_name}/records")
async def query_records(
    collection_name: str,
    body: QueryRequest,
    target: Target = Depends(connection_params),
    store: CollectionStore = Depends(get_store),
):
    try:
        if isinstance(body.query, str):
            records = await store.query_records_by_id(
                target.connection, collection_name, body.query, target.api_version
            )
        else:
            records = await store.query_records(
                target.connection, collection_name, body.query, target.api_version
            )
    except Exception as e:
        return error_response(e)
    return {"records": [r.model_dump(exclude_unset=True) for r in records]}


@router.delete("/collections/{collection_name}/records")
async def delete_record(
    collection_name: str,
    body: DeleteRecordRequest,
    target: Target = Depends(connection_params),
    store: CollectionStore = Depends(get_store),
):
    try:
        result = await store.delete_record(target.connection, collection_name, body.id, target.api_version)
    except Exception as e:
        return error_response(e)
    return result.model_dump()
