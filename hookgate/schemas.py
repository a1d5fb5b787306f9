"""
Pydantic schemas for secret records, inbound events and API responses.

This module contains:
- Secret store models (one HMAC token and its provisioning time)
- The minimal structural view of an inbound event payload
- Response models for API responses
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Secret Store Models
# =============================================================================

class SecretRecord(BaseModel):
    """
    One HMAC token configured for a repository, an organization or globally.

    Unknown fields are ignored so that secret files can carry extra metadata.
    """
    value: str = Field(..., description="Literal HMAC token")
    created_at: Optional[datetime] = Field(
        None,
        description="Time the token was provisioned (RFC3339)"
    )

    @field_validator("created_at", mode="before")
    @classmethod
    def reject_epoch_timestamps(cls, v):
        """Only RFC3339 strings (or YAML timestamps) are timestamps, not epoch numbers."""
        if isinstance(v, str):
            numeric = v.strip().lstrip("+-").replace(".", "", 1).isdigit()
        else:
            numeric = isinstance(v, (int, float))
        if numeric:
            raise ValueError("created_at must be an RFC3339 timestamp")
        return v

    model_config = {"frozen": True}


# =============================================================================
# Inbound Event Models
# =============================================================================

class Repository(BaseModel):
    full_name: str = Field(..., description="Repository identifier, e.g. org/repo")


class Sender(BaseModel):
    login: Optional[str] = Field(None, description="Login of the user that triggered the event")


class SenderIdentity(BaseModel):
    """
    Minimal view of an event payload: who sent it and for which repository.

    Everything else in the payload is ignored.
    """
    repository: Repository
    sender: Optional[Sender] = None

    @property
    def repository_full_name(self) -> str:
        return self.repository.full_name

    @property
    def sender_login(self) -> Optional[str]:
        return self.sender.login if self.sender else None


# =============================================================================
# Pydantic Response Models
# =============================================================================

class HookResponse(BaseModel):
    """Response model for an accepted hook delivery."""
    status: str = Field(default="ok", description="Operation status")
    event: str = Field(..., description="Value of the X-GitHub-Event header")


class ErrorResponse(BaseModel):
    """Response model for error responses."""
    detail: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
