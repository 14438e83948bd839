"""
Provider identity classification and capability lookup
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union
from enum import Enum

from ..models.enums import ProviderType, OperationKind
from ..models.data_classes import provider_key
from .errors import ConfigurationError

ALL_OPERATIONS = frozenset({OperationKind.TEXT, OperationKind.TTS, OperationKind.STT})
TEXT_ONLY = frozenset({OperationKind.TEXT})

DEFAULT_CAPABILITIES: Dict[str, FrozenSet[OperationKind]] = {
    ProviderType.OPENAI.value: ALL_OPERATIONS,
    ProviderType.AZURE.value: ALL_OPERATIONS,
    ProviderType.CLAUDE.value: TEXT_ONLY,
    ProviderType.GEMINI.value: TEXT_ONLY,
}

# Checked in this order; the first vendor with a matching fragment wins
DEFAULT_MODEL_FRAGMENTS: List[Tuple[str, Tuple[str, ...]]] = [
    (ProviderType.OPENAI.value, ("gpt", "chatgpt")),
    (ProviderType.CLAUDE.value, ("claude",)),
    (ProviderType.GEMINI.value, ("gemini", "bard")),
]

# Endpoint substrings that pin a vendor regardless of the model name
DEFAULT_ENDPOINT_PATTERNS: List[Tuple[str, str]] = [
    ("openai.azure.com", ProviderType.AZURE.value),
]


class ProviderCapabilityResolver:
    """Classifies model identifiers into providers and answers capability queries.

    Classification precedence is fixed: a vendor-specific endpoint wins over the
    model name, a model-name fragment wins over the fallback vendor, and the
    fallback vendor is always returned when nothing matches.
    """

    def __init__(self, fallback_provider: Union[str, Enum] = ProviderType.OPENAI,
                 capabilities: Optional[Dict[str, Iterable[OperationKind]]] = None,
                 model_fragments: Optional[Sequence[Tuple[str, Sequence[str]]]] = None,
                 endpoint_patterns: Optional[Sequence[Tuple[str, str]]] = None):
        self._capabilities: Dict[str, FrozenSet[OperationKind]] = dict(DEFAULT_CAPABILITIES)
        for provider, kinds in (capabilities or {}).items():
            self._capabilities[provider_key(provider)] = frozenset(OperationKind(k) for k in kinds)

        fragments = model_fragments if model_fragments is not None else DEFAULT_MODEL_FRAGMENTS
        self._fragments: List[Tuple[str, Tuple[str, ...]]] = [
            (provider_key(provider), tuple(f.lower() for f in frags))
            for provider, frags in fragments
        ]

        patterns = endpoint_patterns if endpoint_patterns is not None else DEFAULT_ENDPOINT_PATTERNS
        self._endpoint_patterns = [(pattern.lower(), provider_key(provider)) for pattern, provider in patterns]

        self.fallback_provider = provider_key(fallback_provider)
        if self.fallback_provider not in self._capabilities:
            raise ConfigurationError(f"Unknown fallback provider: {self.fallback_provider}")

    def classify(self, model: str, endpoint: Optional[str] = None) -> str:
        """Return the provider id serving `model`, honoring an endpoint override"""
        if endpoint:
            endpoint_lower = endpoint.lower()
            for pattern, provider in self._endpoint_patterns:
                if pattern in endpoint_lower:
                    return provider

        model_lower = (model or "").lower()
        for provider, fragments in self._fragments:
            if any(fragment in model_lower for fragment in fragments):
                return provider

        return self.fallback_provider

    def capabilities_of(self, provider: Union[str, Enum]) -> FrozenSet[OperationKind]:
        key = provider_key(provider)
        try:
            return self._capabilities[key]
        except KeyError:
            raise ConfigurationError(f"Unknown provider: {key}") from None

    def supports(self, provider: Union[str, Enum], operation_kind: OperationKind) -> bool:
        return OperationKind(operation_kind) in self.capabilities_of(provider)

    def is_known(self, provider: Union[str, Enum]) -> bool:
        return provider_key(provider) in self._capabilities

    def known_providers(self) -> List[str]:
        return list(self._capabilities)

    def register(self, provider: Union[str, Enum], capabilities: Iterable[OperationKind],
                 model_fragments: Sequence[str] = (),
                 endpoint_patterns: Sequence[str] = ()):
        """Add (or replace) a provider identity"""
        key = provider_key(provider)
        self._capabilities[key] = frozenset(OperationKind(k) for k in capabilities)
        if model_fragments:
            self._fragments = [(p, f) for p, f in self._fragments if p != key]
            self._fragments.append((key, tuple(f.lower() for f in model_fragments)))
        for pattern in endpoint_patterns:
            self._endpoint_patterns.append((pattern.lower(), key))
