from typing import Dict, Any, AsyncGenerator, Optional

import httpx

from ..core.exceptions import ConfigurationError
from ..core.generation_config import GenerationConfigResolver


class BaseProvider:
    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient,
                 config_resolver: Optional[GenerationConfigResolver] = None):
        self.base_url = (config.get("base_url") or "").rstrip("/")
        self.headers = dict(config.get("headers", {}))
        self.client = client
        self.config_resolver = config_resolver or GenerationConfigResolver()

        if not self.base_url:
            raise ConfigurationError("Provider base_url is not configured.", setting="base_url")

    async def generate(self, prompt: str, model: str, temperature: Optional[float] = None,
                       max_tokens: Optional[int] = None, request_id: str = "unknown") -> Any:
        raise NotImplementedError

    def generate_stream(self, prompt: str, model: str, temperature: Optional[float] = None,
                        max_tokens: Optional[int] = None,
                        request_id: str = "unknown") -> AsyncGenerator[Dict[str, Any], None]:
        raise NotImplementedError
