"""Pydantic models shared by both protocol facades: Connection, Auth, Record, CollectionInfo."""

import base64
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ApiVersion(str, Enum):
    V1 = "v1"
    V2 = "v2"


class AuthType(str, Enum):
    NONE = "none"
    TOKEN = "token"
    BASIC = "basic"


class Auth(BaseModel):
    """Credentials for one backend. Only the fields matching ``auth_type`` are used."""

    model_config = ConfigDict(frozen=True)

    auth_type: AuthType = AuthType.NONE
    token: str = ""
    username: str = ""
    password: str = ""

    def authorization_header(self) -> str | None:
        """Value for the ``Authorization`` header, or None when unauthenticated."""
        if self.auth_type == AuthType.TOKEN and self.token:
            return f"Bearer {self.token}"
        if self.auth_type == AuthType.BASIC and self.username:
            raw = f"{self.username}:{self.password}".encode()
            return f"Basic {base64.b64encode(raw).decode('ascii')}"
        return None


class Connection(BaseModel):
    """Where and as whom to talk to a backend. Supplied per call, never cached."""

    model_config = ConfigDict(frozen=True)

    url: str  # e.g. "http://localhost:8000"
    tenant: str = "default_tenant"
    database: str = "default_database"
    auth: Auth = Auth()

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    @property
    def cache_key(self) -> tuple[str, str, str]:
        """Scope under which collection names are unique."""
        return (self.base_url, self.tenant, self.database)


class CollectionInfo(BaseModel):
    """One entry of a list-collections response."""

    name: str
    id: str | None = None  # backend id; v2 builds that list bare names omit it
    metadata: dict[str, Any] | None = None


class Record(BaseModel):
    """
    A stored record. Only the fields the backend was asked for are set, so
    ``model_dump(exclude_unset=True)`` yields exactly what was fetched.
    """

    id: str
    document: str | None = None
    metadata: dict[str, Any] | None = None
    embedding: list[float] | None = None
    distance: float | None = None  # query results only; smaller = closer


class OperationResult(BaseModel):
    success: bool = True


class RenameResult(OperationResult):
    new_name: str = ""
