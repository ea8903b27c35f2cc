from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def coerce_text(value: Any) -> str:
    """Render a wire scalar as text; null becomes an empty string."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class APIModel(BaseModel):
    """Base model for wire payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
        protected_namespaces=(),
    )


class Envelope(APIModel):
    """Uniform success/data/error wrapper used on every response."""

    success: bool
    data: Any = None
    # Services send either {"message": ...} or a bare value here.
    error: Any = None

    def error_message(self) -> Optional[str]:
        if isinstance(self.error, dict):
            message = self.error.get("message")
            if isinstance(message, str) and message:
                return message
        return None
