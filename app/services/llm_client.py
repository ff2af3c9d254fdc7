"""
Structured-output model client.

One agent call is one chat-completions request: instructions + prompt in,
a JSON object validated against a pydantic schema out. There is no retry;
any failure surfaces as AgentFailed naming the stage.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.config import settings, is_configured
from app.errors import AgentFailed, ConfigurationError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class StructuredModel(Protocol):
    """Anything that can run a prompt against a schema (real client or test stub)."""

    async def generate(
        self,
        *,
        name: str,
        instructions: str,
        prompt: str,
        schema: Type[SchemaT],
    ) -> SchemaT:  # pragma: no cover - interface
        ...


class StructuredModelClient:
    """OpenAI-compatible chat-completions client with JSON responses."""

    def __init__(
        self,
        *,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url if api_url is not None else settings.LLM_API_URL
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.model = model or settings.LLM_MODEL
        self.timeout_seconds = timeout_seconds or settings.LLM_TIMEOUT_SECONDS
        self._transport = transport

    def validate_config(self) -> None:
        if not is_configured(self.api_url):
            raise ConfigurationError("LLM_API_URL")
        if not is_configured(self.api_key):
            raise ConfigurationError("LLM_API_KEY")

    def _build_request_body(self, instructions: str, prompt: str, schema: Type[BaseModel]) -> dict[str, Any]:
        schema_json = json.dumps(schema.model_json_schema(by_alias=True), sort_keys=True)
        return {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {
                    "role": "system",
                    "content": (
                        f"{instructions}\n"
                        "Return ONLY a JSON object that conforms to this JSON schema:\n"
                        f"{schema_json}"
                    ),
                },
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
        }

    @staticmethod
    def _parse_response_payload(payload: Any) -> Any:
        """Pull the JSON object out of a chat-completions response."""
        if not isinstance(payload, dict):
            return None
        choices = payload.get("choices") or []
        if not choices:
            return None
        content = (choices[0].get("message") or {}).get("content")
        if not isinstance(content, str):
            return None
        cleaned = content.replace("```json", "").replace("```", "").strip()
        return json.loads(cleaned)

    async def generate(
        self,
        *,
        name: str,
        instructions: str,
        prompt: str,
        schema: Type[SchemaT],
    ) -> SchemaT:
        self.validate_config()
        body = self._build_request_body(instructions, prompt, schema)
        headers = {"Authorization": f"Bearer {self.api_key}"}

        timeout = httpx.Timeout(self.timeout_seconds)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise AgentFailed(name, f"model request failed: {exc}") from exc

        if not response.is_success:
            raise AgentFailed(name, f"model endpoint returned status {response.status_code}")

        try:
            parsed = self._parse_response_payload(response.json())
        except ValueError as exc:
            raise AgentFailed(name, "model returned invalid JSON") from exc
        if parsed is None:
            raise AgentFailed(name, "model returned no output")

        try:
            return schema.model_validate(parsed)
        except ValidationError as exc:
            raise AgentFailed(name, f"output did not match schema: {exc.error_count()} error(s)") from exc


def get_model_client() -> StructuredModelClient:
    """Build the model client, failing with ConfigurationError when credentials are missing."""
    client = StructuredModelClient()
    client.validate_config()
    return client
