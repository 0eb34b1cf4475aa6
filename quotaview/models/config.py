"""Monitor configuration."""

from typing import Optional
from pydantic import BaseModel, Field


class RequestMetadata(BaseModel):
    """Identity of the calling integration, sent with every status request."""
    ide_name: str = Field("antigravity", alias="ideName")
    extension_name: str = Field("antigravity", alias="extensionName")
    locale: str = "en"

    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict:
        """Request body for GetUserStatus."""
        return {"metadata": self.model_dump(by_alias=True)}


class MonitorConfig(BaseModel):
    """Constants for discovery, querying and scheduling.

    Built in code by the host application. Nothing here is read from disk
    or from the environment.
    """
    refresh_interval_seconds: float = 300.0
    tick_interval_seconds: float = 1.0
    process_marker: str = "language_server"
    token_flag: str = "--csrf_token"
    host: str = "127.0.0.1"
    status_path: str = "/exa.language_server_pb.LanguageServerService/GetUserStatus"
    protocol_version: str = "1"
    metadata: RequestMetadata = Field(default_factory=RequestMetadata)
    request_timeout_seconds: Optional[float] = None  # None: aiohttp default
    command_timeout_seconds: Optional[float] = None

    def status_url(self, port: int) -> str:
        """GetUserStatus URL for a candidate port."""
        return f"http://{self.host}:{port}{self.status_path}"
