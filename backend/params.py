"""Request parsing and error mapping shared by the collection and record routes."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException, Query, Request
from fastapi.responses import JSONResponse

from chromadmin.config import get_settings
from chromadmin.errors import InvalidDimension, RecordNotFound
from chromadmin.schemas.models import ApiVersion, Auth, AuthType, Connection
from chromadmin.store import CollectionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Target:
    """Which backend a request talks to, and through which API generation."""

    connection: Connection
    api_version: ApiVersion


def connection_params(
    connectionString: str = Query(..., description="Chroma endpoint, e.g. http://localhost:8000"),
    authType: Optional[str] = Query(None, description="none | token | basic"),
    token: str = Query(""),
    username: str = Query(""),
    password: str = Query(""),
    tenant: str = Query("default_tenant"),
    database: str = Query("default_database"),
    apiVersion: Optional[str] = Query(None, description="v1 | v2 (default from CHROMADMIN_API_VERSION)"),
) -> Target:
    """FastAPI dependency: build the Connection and API version from query parameters."""
    try:
        auth = Auth(
            auth_type=AuthType(authType or "none"),
            token=token,
            username=username,
            password=password,
        )
        version = ApiVersion((apiVersion or get_settings().chromadmin_api_version).lower())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Target(
        connection=Connection(url=connectionString, tenant=tenant, database=database, auth=auth),
        api_version=version,
    )


def get_store(request: Request) -> CollectionStore:
    """FastAPI dependency: the store built at application startup."""
    return request.app.state.store


def parse_where(where: Optional[str]) -> Optional[dict[str, Any]]:
    """Decode the JSON ``where`` query parameter; the filter itself is not inspected."""
    if not where:
        return None
    try:
        return json.loads(where)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid where filter: {e}")


def error_response(exc: Exception) -> JSONResponse:
    """Map an access-layer failure to an HTTP status with ``{"error": message}``."""
    if isinstance(exc, RecordNotFound):
        status_code = 404
    elif isinstance(exc, InvalidDimension):
        status_code = 400
    else:
        logger.exception("Collection operation failed")
        status_code = 500
    return JSONResponse(status_code=status_code, content={"error": str(exc)})
