from __future__ import annotations

from typing import Any, List, Optional

from pydantic import Field, field_validator

from drift_client.schemas.common import APIModel, coerce_text


class ChatMessage(APIModel):
    """One message of a branch's history."""

    role: str
    content: str = ""

    @field_validator("role", "content", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)


class Fact(APIModel):
    """Key/value pair extracted from a branch by the service."""

    key: str = ""
    value: str = ""

    @field_validator("key", "value", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)


class BranchFactSet(APIModel):
    """Fact snapshot of one branch, returned alongside a context fetch."""

    branch_id: Optional[str] = None
    branch_topic: str = ""
    is_current: bool = False
    facts: List[Fact] = Field(default_factory=list)

    @field_validator("branch_id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> Optional[str]:
        return None if value is None else coerce_text(value)

    @field_validator("branch_topic", mode="before")
    @classmethod
    def _topic(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("is_current", mode="before")
    @classmethod
    def _current(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("facts", mode="before")
    @classmethod
    def _facts(cls, value: Any) -> Any:
        return [] if value is None else value


class Context(APIModel):
    """Messages of a branch plus the fact sets of every branch in its conversation."""

    branch_topic: str = ""
    messages: List[ChatMessage] = Field(default_factory=list)
    all_facts: List[BranchFactSet] = Field(default_factory=list)

    @field_validator("branch_topic", mode="before")
    @classmethod
    def _topic(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("messages", "all_facts", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return [] if value is None else value
