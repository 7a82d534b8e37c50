"""Fallback orchestration over the speech analysis providers.

``AnalysisOrchestrator.analyze()`` tries providers strictly one after
another and never raises: if every attempt fails, the local heuristic
scorer produces the result. Providers live in an ordered
``ProviderRegistry`` so adding one never touches the orchestration logic.

Usage::

    from src.services.orchestrator import get_orchestrator

    result = await get_orchestrator().analyze(clip, preferred="auto", env=env)
"""

import logging
from functools import lru_cache

from src.core.config import Settings, get_settings
from src.core.exceptions import UnknownProviderError
from src.core.models import (
    AnalysisResult,
    AudioClip,
    ProviderInfo,
    ProviderKind,
    RuntimeEnvironment,
)
from src.services import scoring
from src.services.audio.processor import estimate_duration_seconds
from src.services.providers import BaseProvider, create_provider

logger = logging.getLogger(__name__)

AUTO = "auto"
PLACEHOLDER_TRANSCRIPT = "Análise básica - transcrição não disponível"


class ProviderRegistry:
    """Ordered, name-keyed collection of providers.

    Iteration order is registration order, which is the ``auto`` priority.
    """

    def __init__(self, providers: list[BaseProvider] | None = None) -> None:
        self._providers: dict[str, BaseProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: BaseProvider) -> None:
        """Add (or replace, keeping its position) a provider."""
        self._providers[provider.name] = provider

    def get(self, name: str) -> BaseProvider | None:
        return self._providers.get(name)

    def names(self) -> list[str]:
        return list(self._providers)

    def ordered(self) -> list[BaseProvider]:
        """Remote providers first, on-device last, otherwise registration order."""
        providers = list(self._providers.values())
        return sorted(providers, key=lambda p: p.kind is ProviderKind.on_device)

    def __contains__(self, name: str) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def build_default_registry(settings: Settings | None = None) -> ProviderRegistry:
    """Create a registry from ``settings.provider_order``; unknown names are skipped."""
    settings = settings or get_settings()
    registry = ProviderRegistry()
    for name in settings.provider_order:
        try:
            registry.register(create_provider(name))
        except UnknownProviderError:
            logger.warning("Ignoring unknown provider in provider_order: %s", name)
    return registry


class AnalysisOrchestrator:
    """Runs the provider fallback chain for one clip at a time.

    Holds no per-call state; the same instance can serve every request.

    Args:
        registry: Providers to try, in priority order.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def _candidates(self, preferred: str, env: RuntimeEnvironment) -> list[BaseProvider]:
        if preferred == AUTO:
            providers = self._registry.ordered()
        else:
            provider = self._registry.get(preferred)
            if provider is None:
                logger.warning("Preferred provider %r is not registered", preferred)
                return []
            providers = [provider]

        candidates = []
        for provider in providers:
            if provider.is_available(env):
                candidates.append(provider)
            else:
                logger.info("Skipping provider %s (unavailable: online=%s)", provider.name, env.online)
        return candidates

    async def analyze(
        self,
        clip: AudioClip,
        preferred: str = AUTO,
        env: RuntimeEnvironment | None = None,
    ) -> AnalysisResult:
        """Analyze ``clip`` with the first provider that succeeds.

        Args:
            clip: The finalized recording.
            preferred: ``"auto"`` for the full chain, or one provider name to
                try only that provider.
            env: Host conditions (online, on-device recognizer present).

        Returns:
            The first successful provider result, unmodified, or the local
            heuristic result when every attempt failed.
        """
        env = env or RuntimeEnvironment()

        for provider in self._candidates(preferred, env):
            logger.info("Trying analysis with %s", provider.name)
            try:
                return await provider.analyze(clip)
            except Exception as exc:
                logger.warning("Analysis with %s failed: %s", provider.name, exc)

        duration = estimate_duration_seconds(clip)
        logger.info(
            "All providers failed; using local analysis (duration=%ss, %d bytes)",
            duration,
            clip.size_bytes,
        )
        return scoring.score(PLACEHOLDER_TRANSCRIPT, duration)

    def choose_preferred(self, env: RuntimeEnvironment) -> str:
        """Pick a single provider the way the dashboard pre-selects one.

        Offline hosts use the on-device provider; otherwise the first
        configured remote provider; otherwise on-device.
        """
        on_device = next(
            (p.name for p in self._registry.ordered() if p.kind is ProviderKind.on_device),
            AUTO,
        )
        if not env.online:
            return on_device
        for provider in self._registry.ordered():
            if provider.kind is ProviderKind.remote and provider.is_configured():
                return provider.name
        return on_device

    def describe(self, env: RuntimeEnvironment) -> list[ProviderInfo]:
        """Provider status for display."""
        return [
            ProviderInfo(
                name=p.name,
                display_name=p.display_name,
                kind=p.kind,
                configured=p.is_configured(),
                available=p.is_available(env),
            )
            for p in self._registry.ordered()
        ]


@lru_cache
def get_orchestrator() -> AnalysisOrchestrator:
    """Return the application-wide orchestrator built from settings."""
    return AnalysisOrchestrator(build_default_registry())
