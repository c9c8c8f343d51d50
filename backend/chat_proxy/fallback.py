import random
from typing import List, Optional, Sequence, Tuple

from .schemas import ChatMessage

DEMO_RESPONSES: Tuple[str, ...] = (
    "I'm a demo AI assistant! To enable real AI responses, configure an API key for OpenAI, Anthropic, or another LLM provider in your environment variables.",
    "Thanks for trying out this chatbot! This is a simulated response. To get real AI responses, add your API credentials to the backend configuration.",
    "Hello! I'm currently running in demo mode. For full functionality, please configure an LLM API key (OpenAI, Anthropic, etc.) in your deployment settings.",
    "This is a sample response from the demo chatbot. To unlock real AI conversations, set up your preferred LLM provider's API key in the environment variables.",
    "Great question! I'm operating in demonstration mode right now. To enable actual AI responses, configure your LLM API credentials in the backend.",
)

# (keywords, lead response); first match wins
CATEGORIES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (
        ("hello", "hi"),
        "Hello! I'm running in demo mode. To enable real AI conversations, configure an LLM API key in your environment settings.",
    ),
    (
        ("help",),
        "I'd love to help! Currently, I'm running in demo mode. For full AI capabilities, please set up an API key for OpenAI, Anthropic, or another LLM provider.",
    ),
    (
        ("api", "key"),
        "To enable real AI responses, add an API key to your environment variables: OPENAI_API_KEY, ANTHROPIC_API_KEY, or GEMINI_API_KEY.",
    ),
)


def latest_user_content(messages: Sequence[ChatMessage]) -> str:
    for m in reversed(messages):
        if m.role == "user":
            return m.content
    return ""


class FallbackResponder:
    """
    Canned demo replies for when no provider is configured or reachable.

    A keyword match only adds the category's lead line to the pool; the
    pick itself stays random, so the match is weighted toward, not forced.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def candidates(self, text: str) -> List[str]:
        pool = list(DEMO_RESPONSES)
        lowered = (text or "").lower()
        for keywords, lead in CATEGORIES:
            if any(k in lowered for k in keywords):
                pool.insert(0, lead)
                break
        return pool

    def respond(self, text: str) -> ChatMessage:
        return ChatMessage(role="assistant", content=self.rng.choice(self.candidates(text)))
