from typing import Optional

from fastapi import APIRouter, Query, Request

from .schemas import SendMessageRequest, EnhancedMessageRequest
from ..services.chat_service.context_store import DEFAULT_SESSION_ID

router = APIRouter(prefix="/chat")


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


@router.post("/message")
async def send_message(body: SendMessageRequest, request: Request):
    return await request.app.state.chat_service.send_message(
        body.prompt,
        model=body.model,
        temperature=body.temperature,
        max_tokens=body.max_tokens,
        request_id=_request_id(request)
    )


@router.post("/enhanced-message")
async def send_enhanced_message(body: EnhancedMessageRequest, request: Request):
    return await request.app.state.chat_service.send_enhanced_message(
        body.prompt,
        model=body.model,
        temperature=body.temperature,
        max_tokens=body.max_tokens,
        session_id=body.session_id,
        use_context=body.use_context,
        request_id=_request_id(request)
    )


@router.get("/stream")
async def stream_message(
    request: Request,
    prompt: str = Query(...),
    model: Optional[str] = Query(None),
    temperature: Optional[float] = Query(None, ge=0.1, le=2.0),
    max_tokens: Optional[int] = Query(None, ge=50, le=4000, alias="maxTokens")
):
    return request.app.state.chat_service.stream_message(
        prompt,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        request_id=_request_id(request)
    )


@router.get("/clear-context")
async def clear_context(request: Request, session_id: str = Query(DEFAULT_SESSION_ID, alias="sessionId")):
    return request.app.state.chat_service.clear_context(session_id)


@router.get("/context-info")
async def context_info(request: Request, session_id: str = Query(DEFAULT_SESSION_ID, alias="sessionId")):
    return request.app.state.chat_service.get_context_info(session_id)


@router.get("/metrics")
async def metrics(request: Request):
    return request.app.state.chat_service.get_metrics()
