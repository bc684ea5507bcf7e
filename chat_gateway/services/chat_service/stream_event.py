from dataclasses import dataclass
from typing import Optional, Dict, Any

from .token_accumulator import TokenMetrics


@dataclass
class NormalizedStreamEvent:
    """
    Одно событие стрима, отдаваемое клиенту

    Attributes:
        response_fragment: Text generated since the previous event
        done: True on the terminal event
        model: Model the stream was requested for
        tokens: Token metrics as known at this point
        error: Error message on a failed stream
    """
    response_fragment: str
    done: bool
    model: str
    tokens: Optional[TokenMetrics] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_payload(self) -> Dict[str, Any]:
        """SSE data payload: {content, done, model, tokens?, error?}"""
        payload: Dict[str, Any] = {
            "content": self.response_fragment,
            "done": self.done,
            "model": self.model
        }
        if self.tokens is not None:
            payload["tokens"] = self.tokens.to_dict()
        if self.error is not None:
            payload["error"] = self.error
        return payload
