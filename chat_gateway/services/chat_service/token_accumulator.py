"""
Token Accumulator Module

Token counting and tokens-per-second estimation for Ollama replies.

Single-shot replies report their counters once, together with the total
generation time in nanoseconds. Streaming replies report a cumulative
`eval_count` on the way and `prompt_eval_count` only on the terminal chunk,
so the accumulator keeps the latest known values and derives the speed
from wall-clock time since the stream started.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class TokenMetrics:
    """
    Token counts for one reply.

    Attributes:
        prompt (int): Tokens in the evaluated prompt
        completion (int): Tokens generated so far
        speed (Optional[str]): Tokens per second formatted to 2 decimals
    """
    prompt: int = 0
    completion: int = 0
    speed: Optional[str] = None

    @property
    def total(self) -> int:
        return self.prompt + self.completion

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "prompt": self.prompt,
            "completion": self.completion,
            "total": self.total
        }
        if self.speed is not None:
            result["speed"] = self.speed
        return result


def tokens_per_second(completion_tokens: int, total_duration_ns: int) -> str:
    """
    Speed of a single-shot reply.

    Args:
        completion_tokens (int): Generated tokens (Ollama `eval_count`)
        total_duration_ns (int): Ollama `total_duration`, nanoseconds

    Returns:
        str: tokens per second with 2 decimals; a zero duration counts as 1ns
    """
    duration = max(total_duration_ns or 0, 1)
    return f"{completion_tokens / duration * 1e9:.2f}"


class TokenRateAccumulator:
    """
    Running token metrics for one streaming reply.

    Attributes:
        start_time (float): monotonic timestamp of start(), None before it
        prompt_tokens (int): set once, from the terminal chunk
        completion_tokens (int): latest cumulative eval_count seen
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self.start_time = None
        self.prompt_tokens = 0
        self.completion_tokens = 0

    def start(self):
        """Mark the beginning of the stream; speed is measured from here."""
        self.start_time = self._clock()

    def update(self, chunk: Dict[str, Any]) -> TokenMetrics:
        """
        Fold one parsed backend chunk into the running counts.

        Returns:
            TokenMetrics: the metrics as currently known
        """
        if self.start_time is None:
            self.start()

        eval_count = chunk.get("eval_count")
        if eval_count is not None:
            # Counts are cumulative, never incremental
            self.completion_tokens = max(self.completion_tokens, int(eval_count))

        if chunk.get("done") and chunk.get("prompt_eval_count") is not None:
            self.prompt_tokens = int(chunk["prompt_eval_count"])

        return self.metrics()

    def metrics(self) -> TokenMetrics:
        elapsed = self._clock() - self.start_time if self.start_time is not None else 0
        speed = f"{self.completion_tokens / elapsed:.2f}" if elapsed > 0 else "0"
        return TokenMetrics(
            prompt=self.prompt_tokens,
            completion=self.completion_tokens,
            speed=speed
        )
