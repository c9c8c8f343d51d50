import logging
from typing import Optional, Sequence

import httpx

from .fallback import FallbackResponder, latest_user_content
from .providers.anthropic import AnthropicProvider
from .providers.base import Provider
from .providers.openai import OpenAIProvider
from .schemas import ChatRequest, ChatResponse, ModelItem
from .settings import Settings

logger = logging.getLogger(__name__)

# Priority order: the first provider with a credential serves the request.
PROVIDERS: Sequence[Provider] = (OpenAIProvider(), AnthropicProvider())

DEMO_MODEL = ModelItem(
    id="demo",
    provider="demo",
    name="Demo Mode (Configure API keys to unlock real AI)",
)


def select_provider(settings: Settings, providers: Sequence[Provider] = PROVIDERS) -> Optional[Provider]:
    return next((p for p in providers if settings.has_credential(p.name)), None)


def available_models(settings: Settings, providers: Sequence[Provider] = PROVIDERS) -> list[ModelItem]:
    models: list[ModelItem] = []
    for provider in providers:
        if settings.has_credential(provider.name):
            models += provider.models
    return models or [DEMO_MODEL]


class ChatRouter:
    """
    Sends each chat request to at most one upstream provider. Any failure of
    that single attempt is logged and answered from the fallback pool.
    """

    def __init__(
        self,
        providers: Sequence[Provider] = PROVIDERS,
        fallback: Optional[FallbackResponder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.providers = providers
        self.fallback = fallback or FallbackResponder()
        self.transport = transport

    async def route(self, request: ChatRequest, settings: Settings) -> ChatResponse:
        provider = select_provider(settings, self.providers)
        if provider is None:
            logger.info("No provider credential configured; answering in demo mode")
            return self._fallback(request)

        try:
            # upstream calls carry no timeout
            async with httpx.AsyncClient(timeout=None, transport=self.transport) as client:
                response = await provider.complete(
                    client, settings.credential_for(provider.name), request
                )
        except Exception as e:
            logger.error("Error calling %s API: %s", provider.name, e)
            return self._fallback(request)

        logger.info("Chat request served by %s", provider.name)
        return response

    def _fallback(self, request: ChatRequest) -> ChatResponse:
        return ChatResponse(message=self.fallback.respond(latest_user_content(request.messages)))
