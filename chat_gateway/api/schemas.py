from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..services.chat_service.context_store import DEFAULT_SESSION_ID


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., description="Prompt del usuario")
    model: Optional[str] = Field(None, description="Model to use; DEFAULT_MODEL when omitted")
    temperature: Optional[float] = Field(None, ge=0.1, le=2.0)
    max_tokens: Optional[int] = Field(None, ge=50, le=4000, alias="maxTokens")


class EnhancedMessageRequest(SendMessageRequest):
    session_id: str = Field(DEFAULT_SESSION_ID, alias="sessionId", description="Session scoping the conversation context")
    use_context: bool = Field(True, alias="useContext")
