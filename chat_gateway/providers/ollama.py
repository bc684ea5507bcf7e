import json
from dataclasses import dataclass
from typing import Dict, Any, AsyncGenerator, Iterable, List, Optional

import httpx

from .base import BaseProvider
from ..core.exceptions import UpstreamError, UpstreamNetworkError, ChunkParseError
from ..core.generation_config import GenerationConfig, GenerationConfigResolver
from ..core.logging import logger
from ..utils.ndjson_buffer import NDJSONLineBuffer

GENERATE_PATH = "/api/generate"
TOP_P = 0.9
REPEAT_PENALTY = 1.1


@dataclass
class GenerationResult:
    """Normalized single-shot reply from /api/generate."""
    text: str
    prompt_tokens: int
    completion_tokens: int
    total_duration: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class OllamaProvider(BaseProvider):
    """
    Client for Ollama's /api/generate endpoint.

    `generate` performs a single-shot call; `generate_stream` yields the parsed
    NDJSON chunks of a streaming call one at a time, skipping lines that are
    not JSON objects.
    """

    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient,
                 config_resolver: Optional[GenerationConfigResolver] = None):
        super().__init__(config, client, config_resolver)
        self.headers["Content-Type"] = "application/json"

        # Local models can take a while to load on the first request
        self.request_timeout = httpx.Timeout(
            connect=15.0,
            read=config.get("request_timeout", 120.0),
            write=10.0,
            pool=10.0
        )
        # read: time between chunks, not total time
        self.stream_timeout = httpx.Timeout(
            connect=15.0,
            read=config.get("stream_timeout", 60.0),
            write=10.0,
            pool=10.0
        )

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}{GENERATE_PATH}"

    def build_request_body(self, prompt: str, model: str, stream: bool,
                           generation_config: GenerationConfig) -> Dict[str, Any]:
        return {
            "model": model,
            "prompt": prompt,
            "stream": stream,
            "options": {
                "temperature": generation_config.temperature,
                "num_predict": generation_config.max_tokens,
                "top_p": TOP_P,
                "repeat_penalty": REPEAT_PENALTY
            }
        }

    async def generate(self, prompt: str, model: str, temperature: Optional[float] = None,
                       max_tokens: Optional[int] = None, request_id: str = "unknown") -> GenerationResult:
        generation_config = self.config_resolver.resolve(model, temperature, max_tokens)
        request_body = self.build_request_body(prompt, model, False, generation_config)

        logger.debug_data(
            title="Ollama Request",
            data={"url": self.generate_url, "request_body": request_body},
            request_id=request_id,
            component="ollama_provider",
            data_flow="to_provider"
        )

        try:
            response = await self.client.post(self.generate_url,
                                               headers=self.headers,
                                               json=request_body,
                                               timeout=self.request_timeout)
        except httpx.RequestError as e:
            raise UpstreamNetworkError(f"Could not reach {self.generate_url}: {e}", original_exception=e) from e

        if response.is_error:
            raise self._status_error(response)

        try:
            response_json = response.json()
        except ValueError as e:
            raise UpstreamError("Inference backend returned a non-JSON body",
                                status_code=response.status_code,
                                response_text=response.text,
                                original_exception=e) from e

        logger.debug_data(
            title="Ollama Response",
            data=response_json,
            request_id=request_id,
            component="ollama_provider",
            data_flow="from_provider"
        )

        return GenerationResult(
            text=response_json.get("response") or "",
            prompt_tokens=response_json.get("prompt_eval_count") or 0,
            completion_tokens=response_json.get("eval_count") or 0,
            total_duration=response_json.get("total_duration") or 0
        )

    async def generate_stream(self, prompt: str, model: str, temperature: Optional[float] = None,
                              max_tokens: Optional[int] = None,
                              request_id: str = "unknown") -> AsyncGenerator[Dict[str, Any], None]:
        generation_config = self.config_resolver.resolve(model, temperature, max_tokens)
        request_body = self.build_request_body(prompt, model, True, generation_config)
        buffer = NDJSONLineBuffer()

        logger.debug_data(
            title="Ollama Stream Request",
            data={"url": self.generate_url, "request_body": request_body},
            request_id=request_id,
            component="ollama_provider",
            data_flow="to_provider"
        )

        try:
            async with self.client.stream("POST", self.generate_url,
                                          headers=self.headers,
                                          json=request_body,
                                          timeout=self.stream_timeout) as response:
                if response.is_error:
                    # Сначала читаем ответ, чтобы избежать ResponseNotRead
                    await response.aread()
                    raise self._status_error(response)

                async for raw_chunk in response.aiter_bytes():
                    for chunk in self._decode_lines(buffer.feed(raw_chunk), request_id):
                        yield self._check_in_band_error(chunk)

                for chunk in self._decode_lines(buffer.flush(), request_id):
                    yield self._check_in_band_error(chunk)
        except httpx.RequestError as e:
            raise UpstreamNetworkError(f"Stream from {self.generate_url} failed: {e}", original_exception=e) from e

    def _decode_lines(self, lines: Iterable[str], request_id: str) -> List[Dict[str, Any]]:
        chunks = []
        for line in lines:
            try:
                chunks.append(self.parse_chunk(line))
            except ChunkParseError as e:
                logger.warning(
                    f"Skipping unparseable stream line: {e.message}",
                    request_id=request_id,
                    component="ollama_provider",
                    line_preview=line[:100] + "..." if len(line) > 100 else line
                )
        return chunks

    @staticmethod
    def _check_in_band_error(chunk: Dict[str, Any]) -> Dict[str, Any]:
        # Ollama reports mid-generation failures as {"error": "..."} on a 200 stream
        if isinstance(chunk.get("error"), str):
            raise UpstreamError(chunk["error"], error_code="upstream_stream_error")
        return chunk

    @staticmethod
    def parse_chunk(line: str) -> Dict[str, Any]:
        try:
            chunk = json.loads(line)
        except json.JSONDecodeError as e:
            raise ChunkParseError(str(e), line) from e
        if not isinstance(chunk, dict):
            raise ChunkParseError(f"expected a JSON object, got {type(chunk).__name__}", line)
        return chunk

    def _status_error(self, response: httpx.Response) -> UpstreamError:
        response_text = response.text
        error_message = f"{response.status_code} - {response_text}"
        # Ollama answers errors as {"error": "..."}
        try:
            error_json = response.json()
            if isinstance(error_json, dict) and isinstance(error_json.get("error"), str):
                error_message = f"{response.status_code} - {error_json['error']}"
        except ValueError:
            pass

        return UpstreamError(
            error_message,
            status_code=response.status_code,
            response_text=response_text
        )
