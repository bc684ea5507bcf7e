"""
Chat Service Module

ChatService coordinates the chat endpoints: it resolves the model, builds
enhanced prompts from session context, calls the inference backend, post-
processes replies, keeps the session context and the quality counters up
to date, and wraps streaming replies into Server-Sent Events.

The context store and quality tracker are owned by the ChatService instance
that lives on app.state for the lifetime of the process.
"""

import json
from typing import Any, AsyncGenerator, Dict, Optional

import httpx
from fastapi import HTTPException
from fastapi.responses import StreamingResponse

from ...core.config_manager import ConfigManager
from ...core.error_handling import ErrorHandler, ErrorContext
from ...core.exceptions import UpstreamError
from ...core.generation_config import GenerationConfigResolver
from ...core.logging import logger
from ...providers.ollama import OllamaProvider
from ...utils.timestamps import utc_timestamp
from .context_store import ContextStore, DEFAULT_SESSION_ID
from .prompt_enhancer import PromptEnhancer
from .quality_tracker import QualityTracker
from .response_formatter import ResponseFormatter
from .stream_event import NormalizedStreamEvent
from .stream_processor import StreamProcessor
from .token_accumulator import TokenMetrics, tokens_per_second


class ChatService:
    """
    Facade behind the /chat endpoints.

    Attributes:
        config_manager (ConfigManager): gateway configuration
        provider (OllamaProvider): inference client
        context_store (ContextStore): per-session conversation log
        quality_tracker (QualityTracker): per-model-per-day success counters
    """

    def __init__(self, config_manager: ConfigManager, httpx_client: httpx.AsyncClient,
                 context_store: Optional[ContextStore] = None,
                 quality_tracker: Optional[QualityTracker] = None,
                 provider: Optional[OllamaProvider] = None):
        self.config_manager = config_manager
        self.httpx_client = httpx_client
        self.context_store = context_store or ContextStore()
        self.quality_tracker = quality_tracker or QualityTracker()
        self.provider = provider or OllamaProvider(
            config_manager.get_provider_config(),
            httpx_client,
            GenerationConfigResolver(config_manager.get_model_table)
        )

    def resolve_model(self, model: Optional[str]) -> str:
        return model or self.config_manager.default_model

    async def send_message(self, prompt: str, model: Optional[str] = None,
                           temperature: Optional[float] = None, max_tokens: Optional[int] = None,
                           request_id: str = "unknown") -> Dict[str, Any]:
        used_model = self.resolve_model(model)
        context = ErrorContext(request_id=request_id, model_id=used_model)

        try:
            with logger.request_context(operation="Chat Message", request_id=request_id, model_id=used_model):
                result = await self.provider.generate(prompt, used_model, temperature, max_tokens,
                                                      request_id=request_id)
        except UpstreamError as e:
            self.quality_tracker.record(used_model, False)
            raise ErrorHandler.handle_upstream_error(e, context)
        except HTTPException:
            raise
        except Exception as e:
            raise ErrorHandler.handle_internal_server_error(str(e), context, e)

        self.quality_tracker.record(used_model, True)
        tokens = TokenMetrics(prompt=result.prompt_tokens, completion=result.completion_tokens)

        return {
            "success": True,
            "response": result.text,
            "model": used_model,
            "timestamp": utc_timestamp(),
            "tokens": tokens.to_dict()
        }

    async def send_enhanced_message(self, prompt: str, model: Optional[str] = None,
                                    temperature: Optional[float] = None, max_tokens: Optional[int] = None,
                                    session_id: str = DEFAULT_SESSION_ID, use_context: bool = True,
                                    request_id: str = "unknown") -> Dict[str, Any]:
        used_model = self.resolve_model(model)
        session_id = session_id or DEFAULT_SESSION_ID
        context = ErrorContext(request_id=request_id, model_id=used_model, session_id=session_id)

        prior_turns = self.context_store.get(session_id) if use_context else []
        enhanced_prompt = PromptEnhancer.enhance(prompt, prior_turns)

        logger.debug_data(
            title="Enhanced Prompt",
            data=enhanced_prompt,
            request_id=request_id,
            component="chat_service",
            session_id=session_id
        )

        try:
            with logger.request_context(operation="Enhanced Chat Message", request_id=request_id,
                                        model_id=used_model, session_id=session_id):
                result = await self.provider.generate(enhanced_prompt, used_model, temperature, max_tokens,
                                                      request_id=request_id)
        except UpstreamError as e:
            self.quality_tracker.record(used_model, False)
            raise ErrorHandler.handle_upstream_error(e, context)
        except HTTPException:
            raise
        except Exception as e:
            raise ErrorHandler.handle_internal_server_error(str(e), context, e)

        processed = ResponseFormatter.post_process(result.text)
        formatted = ResponseFormatter.classify(processed)
        self.quality_tracker.record(used_model, True)

        tokens = TokenMetrics(
            prompt=result.prompt_tokens,
            completion=result.completion_tokens,
            speed=tokens_per_second(result.completion_tokens, result.total_duration)
        )

        # Обновляем контекст только после успешного ответа
        if use_context:
            self.context_store.append(session_id, prompt, processed)

        return {
            "success": True,
            "response": processed,
            "model": used_model,
            "timestamp": utc_timestamp(),
            "contextLength": len(prior_turns),
            "formatted": formatted.to_dict(),
            "tokens": tokens.to_dict()
        }

    def stream_events(self, prompt: str, model: Optional[str] = None,
                      temperature: Optional[float] = None, max_tokens: Optional[int] = None,
                      request_id: str = "unknown") -> AsyncGenerator[NormalizedStreamEvent, None]:
        used_model = self.resolve_model(model)
        processor = StreamProcessor(self.provider, self.quality_tracker)
        return processor.process_stream(prompt, used_model, temperature, max_tokens, request_id=request_id)

    def stream_message(self, prompt: str, model: Optional[str] = None,
                       temperature: Optional[float] = None, max_tokens: Optional[int] = None,
                       request_id: str = "unknown") -> StreamingResponse:
        events = self.stream_events(prompt, model, temperature, max_tokens, request_id=request_id)
        return StreamingResponse(
            self._to_sse(events),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
        )

    @staticmethod
    async def _to_sse(events: AsyncGenerator[NormalizedStreamEvent, None]) -> AsyncGenerator[bytes, None]:
        try:
            async for event in events:
                yield f"data: {json.dumps(event.to_payload(), ensure_ascii=False)}\n\n".encode("utf-8")
        finally:
            await events.aclose()

    def clear_context(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        target_session_id = session_id or DEFAULT_SESSION_ID
        existed = self.context_store.clear(target_session_id)
        logger.info("Context cleared", session_id=target_session_id, existed=existed)
        return {
            "success": True,
            "message": f"Contexto limpiado para sesión: {target_session_id}",
            "timestamp": utc_timestamp()
        }

    def get_context_info(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        target_session_id = session_id or DEFAULT_SESSION_ID
        messages = self.context_store.get(target_session_id)
        return {
            "sessionId": target_session_id,
            "contextLength": len(messages),
            "messages": messages,
            "timestamp": utc_timestamp()
        }

    def get_metrics(self) -> Dict[str, Any]:
        return self.quality_tracker.report()
