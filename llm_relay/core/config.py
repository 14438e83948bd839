"""
Configuration management for llm-relay
"""

import os
import json
import aiofiles
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..models.schemas import ServiceConfig
from .errors import ConfigurationError
from ..utils.logging import setup_logging

logger = setup_logging()


def parse_services(data: Dict[str, Any]) -> Dict[str, ServiceConfig]:
    """Validate a raw service-key -> settings mapping"""
    if not isinstance(data, dict) or not data:
        raise ConfigurationError("Configuration is required: at least one service must be defined")

    services = {}
    for service_key, service_data in data.items():
        if isinstance(service_data, ServiceConfig):
            services[service_key] = service_data
            continue
        try:
            services[service_key] = ServiceConfig.model_validate(service_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration for service '{service_key}': {e}") from e
    return services


class ConfigManager:
    """Manages loading and hot-reloading of services.json"""

    def __init__(self, config_dir: Optional[str] = None):
        self.config_dir = Path(config_dir or os.getenv("LLM_RELAY_CONFIG_DIR", "config"))
        self.services: Dict[str, ServiceConfig] = {}
        self._last_services_mtime = 0

    @property
    def services_file(self) -> Path:
        return self.config_dir / "services.json"

    async def load_configs(self) -> bool:
        """Load services.json; returns True when the file was (re)read"""
        services_file = self.services_file

        if not services_file.exists():
            logger.error("services.json not found", file_path=str(services_file))
            raise ConfigurationError(f"Configuration file not found: {services_file}")

        current_mtime = services_file.stat().st_mtime
        if current_mtime == self._last_services_mtime:
            return False  # No changes

        try:
            async with aiofiles.open(services_file, 'r') as f:
                content = await f.read()
                data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse services configuration", error=str(e))
            raise ConfigurationError(f"Invalid JSON in {services_file}: {e}") from e

        try:
            self.services = parse_services(data)
        except ConfigurationError as e:
            logger.error("Failed to load services configuration", error=str(e))
            raise

        self._last_services_mtime = current_mtime
        logger.info("Loaded services configuration", service_count=len(self.services))
        return True

    async def refresh_if_changed(self) -> bool:
        """Check for configuration file changes and reload if necessary"""
        return await self.load_configs()

    def get_service(self, service_key: str) -> ServiceConfig:
        if service_key not in self.services:
            raise ConfigurationError(f"Service configuration not found for: {service_key}")
        return self.services[service_key]
