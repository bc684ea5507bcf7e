from .base import BaseProvider
from .ollama import OllamaProvider, GenerationResult

__all__ = ["BaseProvider", "OllamaProvider", "GenerationResult"]
