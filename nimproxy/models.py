"""
Data models
Request and response models for the OpenAI-compatible surface
"""
from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional, Union

from nimproxy.constants import ResponseConstants

class Message(BaseModel):
    """Chat message, passed to the upstream verbatim (extra keys included)"""
    model_config = ConfigDict(extra="allow")

    role: str
    content: Optional[Union[str, List[Dict[str, Any]]]] = None

class ChatCompletionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    model: str
    messages: List[Message]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: Optional[bool] = None

class ModelInfo(BaseModel):
    id: str
    object: str = ResponseConstants.MODEL_OBJECT
    created: int
    owned_by: str
    nim_model: str
    supports_thinking: bool

class ModelsResponse(BaseModel):
    object: str = ResponseConstants.LIST_OBJECT
    data: List[ModelInfo]
