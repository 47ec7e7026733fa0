"""Provider registry."""

from __future__ import annotations

from .base import ProviderRegistry
from .dryrun import DryRunProvider
from .gemini import GeminiProvider


def default_registry(api_key: str | None = None) -> ProviderRegistry:
    return ProviderRegistry(
        [
            DryRunProvider(),
            GeminiProvider(api_key=api_key),
        ]
    )
