from typing import Any, Dict, Optional

from ..schemas import ChatMessage, ChatRequest, ModelItem, Usage
from .base import Provider, first, reply, resolve_options


class OpenAIProvider(Provider):
    """
    OpenAI Chat Completions:
    POST https://api.openai.com/v1/chat/completions
    with {model, messages, temperature, max_tokens}
    and reads choices[0].message.content from the reply.
    """
    name = "openai"
    api_url = "https://api.openai.com/v1/chat/completions"
    default_model = "gpt-3.5-turbo"
    models = [
        ModelItem(id="gpt-3.5-turbo", provider="openai", name="GPT-3.5 Turbo"),
        ModelItem(id="gpt-4", provider="openai", name="GPT-4"),
        ModelItem(id="gpt-4-turbo", provider="openai", name="GPT-4 Turbo"),
    ]

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def format_request(self, request: ChatRequest) -> Dict[str, Any]:
        options = resolve_options(request, self.default_model)
        return {
            "model": options["model"],
            "messages": [m.model_dump() for m in request.messages],
            "temperature": options["temperature"],
            "max_tokens": options["max_tokens"],
        }

    def parse_response(self, data: Dict[str, Any]) -> ChatMessage:
        message = first(data.get("choices")).get("message")
        if not isinstance(message, dict):
            message = {}
        return reply(message.get("content"))

    def parse_usage(self, data: Dict[str, Any]) -> Optional[Usage]:
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return None
        prompt = usage.get("prompt_tokens") or 0
        completion = usage.get("completion_tokens") or 0
        return Usage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=usage.get("total_tokens") or prompt + completion,
        )
