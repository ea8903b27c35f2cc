from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import field_validator

from drift_client.schemas.common import APIModel, coerce_text


class RouteResult(APIModel):
    """Routing decision for a message posted to a conversation."""

    action: Optional[str] = None
    branch_id: Optional[str] = None
    branch_topic: Optional[str] = None
    message_id: Optional[str] = None
    is_new_branch: Optional[bool] = None
    reason: Optional[str] = None

    @field_validator("branch_id", "message_id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> Optional[str]:
        return None if value is None else coerce_text(value)


class Branch(APIModel):
    """Serialized branch metadata."""

    id: Optional[str] = None
    conversation_id: Optional[str] = None
    topic: Optional[str] = None
    parent_id: Optional[str] = None
    message_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "conversation_id", "parent_id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> Optional[str]:
        return None if value is None else coerce_text(value)
