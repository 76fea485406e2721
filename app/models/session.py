"""
Per-session context handed to the builder and runner engines
"""
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

class ConnectionParams(BaseModel):
    """Credentials for one upstream base"""
    apiKey: str = Field(..., min_length=1)
    baseId: str = Field(..., min_length=1)

@dataclass(frozen=True)
class SessionContext:
    """Who is acting and against which base.

    Built per request from the bearer token and the connection headers; the
    public runner builds one from the stored form instead.
    """
    connection: ConnectionParams
    owner_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.owner_id is not None
