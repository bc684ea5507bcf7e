import asyncio
import copy
import os
from typing import Dict, Any, List, Optional

import yaml

from .exceptions import ConfigurationError
from .generation_config import DEFAULT_MODEL_ID, DEFAULT_MODEL_CONFIGS
from .logging import logger
from ..utils.deep_merge import deep_merge


class ConfigManager:
    def __init__(self, config_dir: Optional[str] = None):
        # Загружаем переменные окружения
        self.ollama_base_url = (os.getenv("OLLAMA_BASE_URL") or "").strip().rstrip("/")
        if not self.ollama_base_url:
            raise ConfigurationError("OLLAMA_BASE_URL is not configured", setting="OLLAMA_BASE_URL")

        self.default_model = os.getenv("DEFAULT_MODEL") or DEFAULT_MODEL_ID
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.request_timeout = self._float_env("OLLAMA_TIMEOUT", 120.0)
        self.stream_timeout = self._float_env("OLLAMA_STREAM_TIMEOUT", 60.0)

        self.config_dir = config_dir or os.getenv("CONFIG_DIR", "config")
        self.models_path = os.path.join(self.config_dir, "models.yaml")
        self.config = self._load_config()
        self.last_mtimes = {}
        self._initialize_mtimes()
        self._reloader_task: Optional[asyncio.Task] = None

        logger.info(
            "Configuration manager initialized",
            ollama_base_url=self.ollama_base_url,
            default_model=self.default_model,
            log_level=self.log_level,
            config_dir=self.config_dir,
            models_config_exists=os.path.exists(self.models_path),
            models_count=len(self.config["models"])
        )

    @staticmethod
    def _float_env(name: str, default: float) -> float:
        raw = os.getenv(name)
        if raw is None or raw == "":
            return default
        try:
            return float(raw)
        except ValueError:
            raise ConfigurationError(f"{name} must be a number, got {raw!r}", setting=name)

    @staticmethod
    def list_env(name: str, default: List[str]) -> List[str]:
        raw = os.getenv(name)
        if not raw:
            return default
        return [item.strip() for item in raw.split(",") if item.strip()]

    def _load_config(self) -> Dict[str, Any]:
        models = copy.deepcopy(DEFAULT_MODEL_CONFIGS)
        try:
            with open(self.models_path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
            file_models = loaded.get('models', {}) if isinstance(loaded, dict) else {}
            if isinstance(file_models, dict):
                deep_merge(models, {str(key): value for key, value in file_models.items()})
            else:
                logger.warning(f"Ignoring 'models' section in {self.models_path}: expected a mapping")
        except FileNotFoundError:
            logger.debug(f"No model config at {self.models_path}, using built-in defaults")
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML file: {e}", error_type="yaml_parse_error", file_path=self.models_path)
        return {"models": models}

    def get_config(self) -> Dict[str, Any]:
        return self.config

    def get_model_table(self) -> Dict[str, Any]:
        return self.config["models"]

    def get_provider_config(self) -> Dict[str, Any]:
        return {
            "base_url": self.ollama_base_url,
            "request_timeout": self.request_timeout,
            "stream_timeout": self.stream_timeout,
        }

    def reload_config(self):
        logger.info("Reloading configuration", config_dir=self.config_dir)
        self.config = self._load_config()
        logger.info("Configuration reloaded", models_count=len(self.config["models"]))

    def _initialize_mtimes(self):
        try:
            self.last_mtimes[self.models_path] = os.path.getmtime(self.models_path)
        except FileNotFoundError:
            pass

    def _config_changed(self) -> bool:
        try:
            mtime = os.path.getmtime(self.models_path)
        except FileNotFoundError:
            return False
        if self.last_mtimes.get(self.models_path, 0) < mtime:
            self.last_mtimes[self.models_path] = mtime
            return True
        return False

    async def _reload_config_task(self, interval: float = 5.0):
        while True:
            if self._config_changed():
                logger.debug("Configuration file changed, triggering reload", changed_file=self.models_path)
                self.reload_config()
            await asyncio.sleep(interval)

    def start_reloader_task(self):
        if self._reloader_task is None or self._reloader_task.done():
            self._reloader_task = asyncio.create_task(self._reload_config_task())

    async def stop_reloader_task(self):
        if self._reloader_task is None:
            return
        self._reloader_task.cancel()
        try:
            await self._reloader_task
        except asyncio.CancelledError:
            pass
        self._reloader_task = None
