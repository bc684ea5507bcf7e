"""
Chat Service Package

Components of the chat pipeline:

- prompt_enhancer: instruction template around the user prompt and prior turns
- token_accumulator: token counts and tokens-per-second estimates
- response_formatter: whitespace normalization, paragraphing, classification
- context_store: bounded per-session conversation log
- quality_tracker: per-model-per-day success counters
- stream_processor: streaming orchestrator producing normalized events
- chat_service: facade used by the HTTP layer
"""

from .chat_service import ChatService
from .context_store import ContextStore
from .prompt_enhancer import PromptEnhancer
from .quality_tracker import QualityTracker
from .response_formatter import ResponseFormatter, FormattedResponse, SimpleResponse, DetailedResponse
from .stream_event import NormalizedStreamEvent
from .stream_processor import StreamProcessor, StreamState
from .token_accumulator import TokenMetrics, TokenRateAccumulator, tokens_per_second

__all__ = [
    "ChatService",
    "ContextStore",
    "PromptEnhancer",
    "QualityTracker",
    "ResponseFormatter",
    "FormattedResponse",
    "SimpleResponse",
    "DetailedResponse",
    "NormalizedStreamEvent",
    "StreamProcessor",
    "StreamState",
    "TokenMetrics",
    "TokenRateAccumulator",
    "tokens_per_second",
]
