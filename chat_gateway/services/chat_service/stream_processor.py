"""
Stream Processor Module

Turns one streaming /api/generate call into a sequence of normalized stream
events with running token metrics.

Lifecycle of a StreamProcessor (one instance per inbound stream):

    IDLE -> REQUESTING -> STREAMING -> COMPLETED

    IDLE, REQUESTING or STREAMING -> FAILED

The processor pulls one upstream chunk per event it yields. When the
consumer stops iterating, the upstream generator is closed, which releases
the HTTP connection to the backend.
"""

import time
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Optional

from ...core.exceptions import UpstreamError
from ...core.logging import logger
from ...providers.base import BaseProvider
from .quality_tracker import QualityTracker
from .stream_event import NormalizedStreamEvent
from .token_accumulator import TokenRateAccumulator


class StreamState(Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = (StreamState.COMPLETED, StreamState.FAILED)


class IncompleteStreamError(UpstreamError):
    """The backend closed the stream without a done=true chunk."""
    def __init__(self):
        super().__init__(
            "Inference backend closed the stream before completion",
            error_code="upstream_stream_incomplete"
        )


class StreamProcessor:
    """
    Streaming orchestrator for a single request.

    Attributes:
        provider (BaseProvider): inference client producing backend chunks
        quality_tracker (QualityTracker): receives one success or failure
            record per stream attributable to the backend
        state (StreamState): current lifecycle state
        chunk_count (int): parseable chunks received so far
    """

    def __init__(self, provider: BaseProvider, quality_tracker: QualityTracker,
                 accumulator: Optional[TokenRateAccumulator] = None):
        self.provider = provider
        self.quality_tracker = quality_tracker
        self.accumulator = accumulator or TokenRateAccumulator()
        self.state = StreamState.IDLE
        self.chunk_count = 0

    def _transition(self, new_state: StreamState, request_id: str):
        logger.debug(
            f"Stream state {self.state.value} -> {new_state.value}",
            request_id=request_id,
            component="stream_processor"
        )
        self.state = new_state

    async def process_stream(self,
                             prompt: str,
                             model: str,
                             temperature: Optional[float] = None,
                             max_tokens: Optional[int] = None,
                             request_id: str = "unknown") -> AsyncGenerator[NormalizedStreamEvent, None]:
        """
        Run the stream and yield normalized events.

        Args:
            prompt: Prompt sent verbatim to the backend
            model: Resolved model id
            temperature: Optional temperature override
            max_tokens: Optional num_predict override
            request_id: Request id for logging

        Yields:
            NormalizedStreamEvent: one per parseable backend chunk, or a single
                terminal error event if the stream fails
        """
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"StreamProcessor already used (state={self.state.value})")

        start_time = time.time()
        self._transition(StreamState.REQUESTING, request_id)
        logger.info(f"Starting stream for model: {model}", request_id=request_id, model_id=model)

        self.accumulator.start()
        upstream = self.provider.generate_stream(prompt, model, temperature, max_tokens, request_id=request_id)

        try:
            async for chunk in upstream:
                if self.state is StreamState.REQUESTING:
                    self._transition(StreamState.STREAMING, request_id)

                event = self._to_event(chunk, model)
                self.chunk_count += 1

                if event.done:
                    self._transition(StreamState.COMPLETED, request_id)
                    self.quality_tracker.record(model, True)
                    logger.info(
                        f"Stream completed for model: {model}. "
                        f"Tokens: {event.tokens.total} - Speed: {event.tokens.speed} t/s",
                        request_id=request_id,
                        model_id=model,
                        total_chunks=self.chunk_count,
                        duration_seconds=round(time.time() - start_time, 3)
                    )
                    yield event
                    return

                yield event

            raise IncompleteStreamError()

        except UpstreamError as e:
            self._transition(StreamState.FAILED, request_id)
            self.quality_tracker.record(model, False)
            yield self._error_event(model, e.message)
        except Exception as e:
            self._transition(StreamState.FAILED, request_id)
            logger.error(
                "Stream processing failed",
                request_id=request_id,
                model_id=model,
                chunks_processed=self.chunk_count,
                error=str(e),
                error_type=type(e).__name__
            )
            yield self._error_event(model, str(e))
        finally:
            await upstream.aclose()

    def _to_event(self, chunk: Dict[str, Any], model: str) -> NormalizedStreamEvent:
        metrics = self.accumulator.update(chunk)
        return NormalizedStreamEvent(
            response_fragment=chunk.get("response") or "",
            done=bool(chunk.get("done", False)),
            model=model,
            tokens=metrics
        )

    @staticmethod
    def _error_event(model: str, message: str) -> NormalizedStreamEvent:
        return NormalizedStreamEvent(
            response_fragment=f"Error: {message}",
            done=True,
            model=model,
            error=message
        )
