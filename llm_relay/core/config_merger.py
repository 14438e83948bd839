"""
Per-field resolution of generation parameters
"""

from typing import Optional

from ..models.data_classes import DISABLED, GenerationParameters


class ConfigurationMerger:
    """Resolves effective parameters: call value > service default > provider default.

    Each field is resolved on its own, so a call that only sets ``temperature``
    still inherits the service's ``max_tokens``. A call value of ``DISABLED``
    wins like any other value but resolves to unset.
    """

    @staticmethod
    def effective(call_params: Optional[GenerationParameters],
                  service_defaults: Optional[GenerationParameters],
                  provider_defaults: Optional[GenerationParameters]) -> GenerationParameters:
        tiers = [call_params, service_defaults, provider_defaults]
        merged = GenerationParameters()

        for name in GenerationParameters.field_names():
            for tier in tiers:
                if tier is None:
                    continue
                value = getattr(tier, name)
                if value is None:
                    continue
                setattr(merged, name, None if value is DISABLED else value)
                break

        return merged
