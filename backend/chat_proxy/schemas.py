from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Literal, Optional

Role = Literal["system", "user", "assistant"]

class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    model: Optional[str] = Field(None, description="model id; provider default when omitted")
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

class ChatResponse(BaseModel):
    message: ChatMessage
    usage: Optional[Usage] = None

class ModelItem(BaseModel):
    id: str
    provider: str
    name: str

class ModelList(BaseModel):
    models: List[ModelItem]

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    # openai / anthropic / gemini / demo_mode
    llm_providers: Dict[str, bool]

class ErrorResponse(BaseModel):
    error: str
    path: Optional[str] = None
