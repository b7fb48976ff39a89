"""System status schemas."""

from pydantic import BaseModel


class OfflineModeRequest(BaseModel):
    """Stored preference for offline mode."""

    offline: bool | None = None


class SystemStatusResponse(BaseModel):
    """Which backend serves requests and why."""

    offline: bool
    preference: str | None
    remote_configured: bool
    app_name: str
    version: str
