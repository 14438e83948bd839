"""
LLMManager - public surface tying configuration, providers, health and failover together
"""

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..models.enums import OperationKind, ProviderType
from ..models.data_classes import (
    GenerationParameters, HealthCheckResult, ProviderHandle, ProviderRecord,
    ServiceProfile, provider_key
)
from ..models.schemas import ChatOptions, ServiceConfig, STTOptions, TTSOptions
from .capabilities import ProviderCapabilityResolver
from .config import parse_services
from .config_merger import ConfigurationMerger
from .errors import ConfigurationError, ManagerDestroyedError
from .executor import FailoverExecutor, Operation
from .health_registry import HealthRegistry
from ..utils.logging import setup_logging

logger = setup_logging()

ProviderFactoryFn = Callable[[str, ServiceConfig], Any]

# Model used for a provider that is neither the primary nor listed in other_models
FALLBACK_MODELS = {
    ProviderType.OPENAI.value: "gpt-4o-mini",
    ProviderType.CLAUDE.value: "claude-3-sonnet-20240229",
    ProviderType.GEMINI.value: "gemini-1.5-flash",
}


class LLMManager:
    """
    Routes chat, TTS and STT calls for configured services across providers.

    Usage::

        async with LLMManager(config) as manager:
            text = await manager.chat("summary", {"messages": [...]})
    """

    def __init__(self, config: Optional[Mapping[str, Union[ServiceConfig, Dict[str, Any]]]],
                 provider_factory: Optional[ProviderFactoryFn] = None,
                 resolver: Optional[ProviderCapabilityResolver] = None,
                 registry: Optional[HealthRegistry] = None,
                 health_interval_seconds: Optional[float] = None):
        if not config:
            raise ConfigurationError("Configuration is required. Please provide at least one service.")

        self.service_configs: Dict[str, ServiceConfig] = parse_services(dict(config))
        self.resolver = resolver or ProviderCapabilityResolver()
        self.registry = registry or HealthRegistry(interval_seconds=health_interval_seconds)
        self.health_interval_seconds = health_interval_seconds

        if provider_factory is None:
            from ..providers.factory import ProviderFactory
            provider_factory = ProviderFactory.create_provider
        self.provider_factory = provider_factory

        self.providers: Dict[str, Any] = {}
        self.profiles: Dict[str, ServiceProfile] = {}

        for service_key, service_config in self.service_configs.items():
            profile = self._build_profile(service_key, service_config)
            for provider in profile.candidates:
                self._ensure_provider(provider, service_config)
            self.profiles[service_key] = self._restrict_to_available(profile)

        self.executor = FailoverExecutor(
            self.profiles, self.providers, self.resolver, self.registry, ConfigurationMerger()
        )
        self._destroyed = False
        self._in_flight = 0
        self._retired: List[Tuple[str, Any]] = []

        logger.info("LLM manager initialized",
                    services=list(self.profiles),
                    providers=list(self.providers))

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _build_profile(self, service_key: str, service_config: ServiceConfig) -> ServiceProfile:
        primary = self.resolver.classify(service_config.default_model, service_config.endpoint)

        fallbacks = []
        for provider in service_config.other_models:
            key = provider_key(provider)
            if not self.resolver.is_known(key):
                raise ConfigurationError(
                    f"Unknown provider '{key}' in other_models of service '{service_key}'"
                )
            fallbacks.append(key)

        profile = ServiceProfile(
            service_key=service_key,
            primary_provider=primary,
            fallback_order=fallbacks,
            max_retries=service_config.retry,
            retry_delay_ms=service_config.retry_delay,
            default_parameters=service_config.default_parameters(),
            endpoint=service_config.endpoint
        )
        profile.models = {
            provider: self._resolve_model(provider, service_config, primary)
            for provider in profile.candidates
        }
        return profile

    @staticmethod
    def _resolve_model(provider: str, service_config: ServiceConfig, primary: str) -> str:
        if provider == primary:
            return service_config.default_model
        if provider in service_config.other_models:
            return service_config.other_models[provider]
        if provider == ProviderType.AZURE.value:
            return service_config.default_model or "gpt-4"
        return FALLBACK_MODELS.get(provider, service_config.default_model)

    def _restrict_to_available(self, profile: ServiceProfile) -> ServiceProfile:
        """Drop providers whose instantiation failed; the first survivor becomes primary"""
        available = [p for p in profile.candidates if p in self.providers]
        if not available:
            raise ConfigurationError(
                f"No provider could be initialized for service '{profile.service_key}'"
            )
        if available[0] != profile.primary_provider:
            logger.warning("Primary provider unavailable, promoting fallback",
                           service_key=profile.service_key,
                           configured=profile.primary_provider,
                           primary=available[0])

        profile.primary_provider = available[0]
        profile.fallback_order = available[1:]
        profile.models = {p: m for p, m in profile.models.items() if p in available}
        return profile

    def _ensure_provider(self, provider: str, service_config: ServiceConfig):
        """Instantiate a provider once; the first service that references it supplies its settings"""
        if provider in self.providers:
            return
        try:
            instance = self.provider_factory(provider, service_config)
        except Exception as e:
            logger.warning("Failed to initialize provider", provider=provider, error=str(e))
            return

        self.providers[provider] = instance
        self.registry.register(provider, self.resolver.capabilities_of(provider))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        """Start periodic health checking"""
        if self._destroyed:
            raise ManagerDestroyedError("LLM manager has been destroyed")
        await self.registry.start_periodic_check(self._probe, self.health_interval_seconds)

    async def destroy(self):
        """Stop health checking, drop health state and close provider sessions.

        Calls already running keep the instances they started with; their
        sessions are closed once the last of them finishes.
        """
        if self._destroyed:
            return
        self._destroyed = True
        self.executor.close()
        await self.registry.destroy()

        self._retired.extend(self.providers.items())
        self.providers.clear()
        await self._close_retired()

        logger.info("LLM manager destroyed")

    async def _close_retired(self):
        if self._in_flight:
            logger.info("Deferring provider close until calls finish",
                        in_flight=self._in_flight,
                        providers=[provider for provider, _ in self._retired])
            return

        retired, self._retired = self._retired, []
        for provider, instance in retired:
            try:
                await instance.close()
            except Exception as e:
                logger.warning("Error closing provider", provider=provider, error=str(e))

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.destroy()

    async def _probe(self, provider: str) -> HealthCheckResult:
        instance = self.providers.get(provider)
        if instance is None:
            raise ConfigurationError(f"Provider {provider} not found")
        return await instance.probe_health()

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def execute(self, service_key: str, kind: OperationKind, operation: Operation,
                      call_params: Optional[GenerationParameters] = None):
        if self._destroyed:
            raise ManagerDestroyedError("LLM manager has been destroyed")

        self._in_flight += 1
        try:
            return await self.executor.execute(service_key, kind, operation, call_params)
        finally:
            self._in_flight -= 1
            if not self._in_flight and self._retired:
                await self._close_retired()

    async def chat(self, service_key: str, options: Union[ChatOptions, Dict[str, Any]]) -> str:
        if not isinstance(options, ChatOptions):
            options = ChatOptions.model_validate(options)

        async def operation(handle: ProviderHandle) -> str:
            return await handle.provider.chat(options.messages, handle.parameters, handle.model)

        return await self.execute(service_key, OperationKind.TEXT, operation,
                                  options.generation_parameters())

    async def tts(self, service_key: str, options: Union[TTSOptions, Dict[str, Any]]) -> bytes:
        if not isinstance(options, TTSOptions):
            options = TTSOptions.model_validate(options)

        async def operation(handle: ProviderHandle) -> bytes:
            return await handle.provider.tts(options, handle.model)

        return await self.execute(service_key, OperationKind.TTS, operation)

    async def stt(self, service_key: str, options: Union[STTOptions, Dict[str, Any]]) -> str:
        if not isinstance(options, STTOptions):
            options = STTOptions.model_validate(options)

        async def operation(handle: ProviderHandle) -> str:
            return await handle.provider.stt(options, handle.model)

        return await self.execute(service_key, OperationKind.STT, operation)

    # ------------------------------------------------------------------
    # Health and provider management
    # ------------------------------------------------------------------

    def ordered_providers(self) -> List[str]:
        return self.registry.ordered_providers()

    def provider_health(self, provider: Optional[Union[str, Enum]] = None):
        """One provider's record (None if unknown) or every record in rank order"""
        if provider is not None:
            return self.registry.get(provider)
        return self.registry.all_health()

    async def manual_health_check(self) -> List[HealthCheckResult]:
        """Probe every provider now, one after another"""
        if self._destroyed:
            raise ManagerDestroyedError("LLM manager has been destroyed")
        return await self.registry.check_all(self._probe)

    def add_provider(self, provider: Union[str, Enum], instance: Any,
                     capabilities: Optional[Iterable[OperationKind]] = None) -> ProviderRecord:
        """Register (or replace) a provider instance; new ids need capabilities"""
        if self._destroyed:
            raise ManagerDestroyedError("LLM manager has been destroyed")

        key = provider_key(provider)
        if capabilities is not None:
            self.resolver.register(key, capabilities)
        elif not self.resolver.is_known(key):
            raise ConfigurationError(f"Unknown provider '{key}': capabilities are required")

        previous = self.providers.get(key)
        if previous is not None and previous is not instance:
            self._retired.append((key, previous))

        self.providers[key] = instance
        record = self.registry.register(key, self.resolver.capabilities_of(key))
        logger.info("Provider added", provider=key)
        return record

    async def remove_provider(self, provider: Union[str, Enum]) -> bool:
        """Drop a provider instance and its health record.

        Running calls may still finish on the removed instance; it is closed
        when no call is in flight.
        """
        key = provider_key(provider)
        instance = self.providers.pop(key, None)
        self.registry.unregister(key)
        if instance is None:
            return False
        self._retired.append((key, instance))
        await self._close_retired()
        logger.info("Provider removed", provider=key)
        return True

    def model_for(self, service_key: str, provider: Union[str, Enum]) -> str:
        """Model (or Azure deployment) a service uses on a given provider"""
        profile = self.executor.get_profile(service_key)
        key = provider_key(provider)
        if key in profile.models:
            return profile.models[key]
        service_config = self.service_configs[service_key]
        configured_primary = self.resolver.classify(service_config.default_model, service_config.endpoint)
        return self._resolve_model(key, service_config, configured_primary)

    def services(self) -> List[str]:
        return list(self.profiles)

    def profile(self, service_key: str) -> ServiceProfile:
        return self.executor.get_profile(service_key)


def create_chat(config: Mapping[str, Union[ServiceConfig, Dict[str, Any]]], **kwargs) -> LLMManager:
    """Convenience constructor"""
    return LLMManager(config, **kwargs)
