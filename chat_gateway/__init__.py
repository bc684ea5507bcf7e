"""
Ollama chat gateway.

HTTP/SSE facade over a local Ollama `/api/generate` backend with
session-scoped conversational context and live token-rate accounting.
"""

__version__ = "0.1.0"
