from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from drift_client.core.config import DEFAULT_TIMEOUT_MS, ClientConfig, Settings, get_settings
from drift_client.core.logging import setup_logging
from drift_client.errors import DriftConfigError, DriftProtocolError
from drift_client.schemas.context import Context, Fact
from drift_client.schemas.drift import Branch, RouteResult
from drift_client.schemas.facts import FactsResult
from drift_client.services.prompt_builder import BuiltPrompt, PromptBuilder, PromptOptionsInput
from drift_client.transport.base import HTTPTransport

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class DriftClient:
    """Async client for the drift routing, context and fact endpoints."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        hosted: Optional[bool] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ) -> None:
        overrides = (base_url, api_key, timeout_ms, hosted)
        if config is not None:
            if any(item is not None for item in overrides):
                raise DriftConfigError(
                    "Pass either config or base_url/api_key/timeout_ms/hosted, not both."
                )
        elif base_url is None:
            raise DriftConfigError("Either config or base_url is required.")
        else:
            config = ClientConfig.create(
                base_url,
                api_key=api_key,
                timeout_ms=DEFAULT_TIMEOUT_MS if timeout_ms is None else timeout_ms,
                hosted=hosted,
            )
        self._config = config
        self._transport = HTTPTransport(config, http_client=http_client)
        self._prompt_builder = prompt_builder or PromptBuilder()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        configure_logging: bool = False,
    ) -> "DriftClient":
        """Create a client from environment-backed settings.

        With ``configure_logging`` the root logger is set up at ``LOG_LEVEL``
        with secret redaction.
        """

        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings.log_level)
        return cls(settings.to_client_config(), http_client=http_client)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def route(
        self, conversation_id: str, content: str, role: str = "user"
    ) -> RouteResult:
        """Route a message to the appropriate branch."""

        data = await self._request(
            "POST",
            "/api/v1/drift/route",
            {"conversationId": conversation_id, "content": content, "role": role},
        )
        return self._load(RouteResult, data)

    async def get_branches(self, conversation_id: str) -> List[Branch]:
        """Get all branches for a conversation."""

        data = await self._request("GET", f"/api/v1/drift/branches/{_segment(conversation_id)}")
        return self._load(List[Branch], data)

    async def get_context(self, branch_id: str) -> Context:
        """Get messages and fact sets for a branch."""

        data = await self._request("GET", f"/api/v1/context/{_segment(branch_id)}")
        return self._load(Context, data)

    async def extract_facts(self, branch_id: str) -> FactsResult:
        """Ask the service to extract facts from a branch."""

        data = await self._request("POST", f"/api/v1/facts/{_segment(branch_id)}/extract")
        return self._load(FactsResult, data)

    async def get_facts(self, branch_id: str) -> List[Fact]:
        """Get existing facts for a branch."""

        data = await self._request("GET", f"/api/v1/facts/{_segment(branch_id)}")
        return self._load(List[Fact], data)

    async def build_prompt(
        self, branch_id: str, options: PromptOptionsInput = None
    ) -> BuiltPrompt:
        """Fetch a branch's context and assemble a system prompt plus messages.

        ``options`` may be ``PromptOptions``, a mapping of its fields, or a bare
        string used as the system prompt.
        """

        context = await self.get_context(branch_id)
        return self._prompt_builder.build(context, options)

    async def _request(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        return await self._transport.request(method, self._config.resolve_path(path), body)

    @staticmethod
    def _load(model: Any, data: Any) -> Any:
        try:
            return TypeAdapter(model).validate_python(data)
        except ValidationError as exc:
            logger.warning("Drift payload did not match %s: %s", model, exc)
            raise DriftProtocolError(
                f"Malformed response payload: {exc.error_count()} invalid field(s)."
            ) from exc
