from typing import Any, Dict, Optional

from ..schemas import ChatMessage, ChatRequest, ModelItem, Usage
from .base import Provider, first, reply, resolve_options

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(Provider):
    """
    Anthropic Messages API. System instructions travel in a top-level
    ``system`` field, so system-role entries are lifted out of ``messages``.
    """
    name = "anthropic"
    api_url = "https://api.anthropic.com/v1/messages"
    default_model = "claude-3-haiku-20240307"
    models = [
        ModelItem(id="claude-3-haiku-20240307", provider="anthropic", name="Claude 3 Haiku"),
        ModelItem(id="claude-3-sonnet-20240229", provider="anthropic", name="Claude 3 Sonnet"),
        ModelItem(id="claude-3-opus-20240229", provider="anthropic", name="Claude 3 Opus"),
    ]

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "x-api-key": api_key,
            "Content-Type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def format_request(self, request: ChatRequest) -> Dict[str, Any]:
        options = resolve_options(request, self.default_model)
        payload: Dict[str, Any] = {
            "model": options["model"],
            "max_tokens": options["max_tokens"],
            "temperature": options["temperature"],
            "messages": [m.model_dump() for m in request.messages if m.role != "system"],
        }
        system = next((m.content for m in request.messages if m.role == "system"), None)
        if system is not None:
            payload["system"] = system
        return payload

    def parse_response(self, data: Dict[str, Any]) -> ChatMessage:
        return reply(first(data.get("content")).get("text"))

    def parse_usage(self, data: Dict[str, Any]) -> Optional[Usage]:
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return None
        prompt = usage.get("input_tokens") or 0
        completion = usage.get("output_tokens") or 0
        return Usage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        )
