"""
Application lifespan management for FastAPI
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..core.config import ConfigManager
from ..core.manager import LLMManager
from ..utils.logging import setup_logging

logger = setup_logging()

# Global managers - initialized during lifespan
config_manager: Optional[ConfigManager] = None
llm_manager: Optional[LLMManager] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    global config_manager, llm_manager

    # Startup
    logger.info("Starting llm-relay application")

    try:
        preset = getattr(app.state, "preset_manager", None)
        if preset is not None:
            config_manager = None
            llm_manager = preset
        else:
            config_manager = ConfigManager()
            await config_manager.load_configs()
            llm_manager = LLMManager(config_manager.services)

        await llm_manager.start()
        logger.info("llm-relay application started successfully",
                    services=llm_manager.services(),
                    providers=llm_manager.ordered_providers())

    except Exception as e:
        logger.error("Failed to start application", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("Shutting down llm-relay application")

    try:
        if llm_manager:
            await llm_manager.destroy()
        logger.info("llm-relay application shutdown complete")
    except Exception as e:
        logger.error("Error during shutdown", error=str(e))


async def refresh_if_changed():
    """Rebuild the manager when services.json changed on disk"""
    global llm_manager

    if config_manager is None:
        return

    try:
        changed = await config_manager.refresh_if_changed()
        if not changed:
            return
        replacement = LLMManager(config_manager.services)
        await replacement.start()
    except Exception as e:
        logger.error("Configuration reload failed, keeping current manager", error=str(e))
        return

    previous, llm_manager = llm_manager, replacement
    logger.info("Configuration reloaded", services=replacement.services())
    if previous:
        await previous.destroy()


def get_config_manager() -> Optional[ConfigManager]:
    """Get the global configuration manager"""
    return config_manager


def get_llm_manager() -> LLMManager:
    """Get the global LLM manager"""
    return llm_manager
