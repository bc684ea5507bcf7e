"""
Per-model generation defaults and their resolution against request overrides.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

DEFAULT_MODEL_ID = "gemma3:4b"
FALLBACK_ENTRY = "default"

# Built-in table; config/models.yaml entries are merged on top of it
DEFAULT_MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "gemma3:4b": {"temperature": 0.7, "max_tokens": 2000},
    "llama3": {"temperature": 0.6, "max_tokens": 3000},
    "mistral": {"temperature": 0.5, "max_tokens": 2500},
    FALLBACK_ENTRY: {"temperature": 0.3, "max_tokens": 1500},
}


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float
    max_tokens: int


def _positive(value: Any, cast: Callable, fallback):
    if isinstance(value, bool):
        return fallback
    try:
        value = cast(value)
    except (TypeError, ValueError):
        return fallback
    return value if value > 0 else fallback


class GenerationConfigResolver:
    """
    Resolves {temperature, max_tokens} for a model.

    Lookup order per field: explicit override, the model's table entry, the
    table's "default" entry, the built-in "default" entry. Never raises.
    """

    def __init__(self, table_source: Optional[Callable[[], Mapping[str, Any]]] = None):
        """
        Args:
            table_source: callable returning the current model table; the
                built-in table is used when omitted
        """
        self._table_source = table_source or (lambda: DEFAULT_MODEL_CONFIGS)

    def _table(self) -> Mapping[str, Any]:
        table = self._table_source()
        return table if isinstance(table, Mapping) else DEFAULT_MODEL_CONFIGS

    def resolve(self, model: Optional[str], temperature: Optional[float] = None,
                max_tokens: Optional[int] = None) -> GenerationConfig:
        table = self._table()
        builtin = DEFAULT_MODEL_CONFIGS[FALLBACK_ENTRY]

        fallback = table.get(FALLBACK_ENTRY)
        if not isinstance(fallback, Mapping):
            fallback = builtin
        entry = table.get(model) if model is not None else None
        if not isinstance(entry, Mapping):
            entry = fallback

        default_temperature = _positive(fallback.get("temperature"), float, builtin["temperature"])
        default_max_tokens = _positive(fallback.get("max_tokens"), int, builtin["max_tokens"])

        return GenerationConfig(
            temperature=temperature if temperature is not None
            else _positive(entry.get("temperature"), float, default_temperature),
            max_tokens=max_tokens if max_tokens is not None
            else _positive(entry.get("max_tokens"), int, default_max_tokens),
        )
