from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..schemas import ChatMessage, ChatRequest, ChatResponse, ModelItem, Usage

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
EMPTY_REPLY = "Sorry, I couldn't generate a response."


class UpstreamError(Exception):
    """A provider answered with a non-success HTTP status."""

    def __init__(self, provider: str, status_code: int, reason: str):
        self.provider = provider
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{provider} API error: {status_code} {reason}")


class Provider(ABC):
    name: str
    api_url: str
    default_model: str
    models: List[ModelItem]

    @abstractmethod
    def build_headers(self, api_key: str) -> Dict[str, str]:
        raise NotImplementedError

    @abstractmethod
    def format_request(self, request: ChatRequest) -> Dict[str, Any]:
        """
        Translate a normalized request into the provider's JSON body.
        """
        raise NotImplementedError

    @abstractmethod
    def parse_response(self, data: Dict[str, Any]) -> ChatMessage:
        """
        Pull the assistant reply out of a provider body. Never raises on a
        missing content field; falls back to EMPTY_REPLY instead.
        """
        raise NotImplementedError

    def parse_usage(self, data: Dict[str, Any]) -> Optional[Usage]:
        return None

    async def complete(
        self, client: httpx.AsyncClient, api_key: str, request: ChatRequest
    ) -> ChatResponse:
        r = await client.post(
            self.api_url,
            headers=self.build_headers(api_key),
            json=self.format_request(request),
        )
        if not r.is_success:
            raise UpstreamError(self.name, r.status_code, r.reason_phrase)

        data = r.json()
        if not isinstance(data, dict):
            data = {}
        return ChatResponse(message=self.parse_response(data), usage=self.parse_usage(data))


def resolve_options(request: ChatRequest, default_model: str) -> Dict[str, Any]:
    return {
        "model": request.model or default_model,
        "temperature": DEFAULT_TEMPERATURE if request.temperature is None else request.temperature,
        "max_tokens": DEFAULT_MAX_TOKENS if request.max_tokens is None else request.max_tokens,
    }


def first(items: Any) -> Dict[str, Any]:
    # first element of a JSON array if it is an object, else {}
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def reply(content: Any) -> ChatMessage:
    if isinstance(content, str) and content:
        return ChatMessage(role="assistant", content=content)
    return ChatMessage(role="assistant", content=EMPTY_REPLY)
