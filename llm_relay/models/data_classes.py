"""
Data classes for llm-relay
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union

from .enums import HealthStatus, OperationKind, FailureType


class _Disabled:
    """Marker for a call that explicitly switches a configured value off"""

    def __repr__(self) -> str:
        return "DISABLED"

    def __bool__(self) -> bool:
        return False


DISABLED = _Disabled()


def provider_key(provider: Union[str, Enum]) -> str:
    """Normalize a provider identity (enum member or plain string) to its string id"""
    if isinstance(provider, Enum):
        return str(provider.value)
    return str(provider)


@dataclass
class ProviderRecord:
    """Health record for one provider, owned by the HealthRegistry"""
    provider: str
    capabilities: FrozenSet[OperationKind] = frozenset()
    status: HealthStatus = HealthStatus.UNKNOWN
    last_checked: Optional[datetime] = None
    response_time_ms: Optional[float] = None
    priority: int = 0
    last_error: Optional[str] = None

    def copy(self) -> "ProviderRecord":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "capabilities": sorted(kind.value for kind in self.capabilities),
            "status": self.status.value,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
            "response_time_ms": self.response_time_ms,
            "priority": self.priority,
            "last_error": self.last_error
        }


@dataclass
class HealthCheckResult:
    """Outcome of a single health probe"""
    provider: str
    status: HealthStatus
    last_checked: datetime = None
    response_time_ms: Optional[float] = None
    error: Optional[str] = None

    def __post_init__(self):
        if self.last_checked is None:
            self.last_checked = datetime.now(timezone.utc)


@dataclass
class GenerationParameters:
    """Generation settings; None means the value was not supplied"""
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    clean_json_response: Optional[bool] = None
    response_schema: Optional[Any] = None
    response_mime_type: Optional[str] = None

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.field_names()
                if getattr(self, name) is not None}


@dataclass
class ServiceProfile:
    """Resolved routing policy for one service key"""
    service_key: str
    primary_provider: str
    fallback_order: List[str] = field(default_factory=list)
    models: Dict[str, str] = field(default_factory=dict)
    max_retries: int = 3
    retry_delay_ms: int = 1000
    default_parameters: GenerationParameters = field(default_factory=GenerationParameters)
    endpoint: Optional[str] = None

    def __post_init__(self):
        ordered = []
        for provider in self.fallback_order:
            if provider != self.primary_provider and provider not in ordered:
                ordered.append(provider)
        self.fallback_order = ordered

    @property
    def candidates(self) -> List[str]:
        """Primary followed by the fallbacks, in configured order"""
        return [self.primary_provider] + list(self.fallback_order)


@dataclass
class CallAttempt:
    """One invocation of an operation against a candidate"""
    provider: str
    attempt: int
    success: bool
    elapsed_ms: float
    error: Optional[str] = None
    failure_type: Optional[FailureType] = None


@dataclass
class ProviderHandle:
    """Everything an operation needs to run against one candidate"""
    provider_id: str
    provider: Any
    model: Optional[str]
    parameters: GenerationParameters
