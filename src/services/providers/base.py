"""
Abstract base class for speech analysis providers.

All provider implementations (OpenAI, Azure, Google, on-device Whisper) must
implement this interface, so the fallback orchestrator can try them in order
without knowing which backend it is talking to.
"""

from abc import ABC, abstractmethod

from src.core.models import AnalysisResult, AudioClip, ProviderKind, RuntimeEnvironment


class BaseProvider(ABC):
    """Interface that every analysis provider must implement."""

    name: str = ""
    display_name: str = ""
    kind: ProviderKind = ProviderKind.remote

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the provider has the credentials/model it needs."""

    def is_available(self, env: RuntimeEnvironment) -> bool:
        """Return True when the provider can be attempted in ``env``.

        Remote providers need the host to be online; on-device providers need
        the local recognizer to be present.
        """
        if not self.is_configured():
            return False
        if self.kind is ProviderKind.remote:
            return env.online
        return env.on_device_available

    @abstractmethod
    async def analyze(self, clip: AudioClip) -> AnalysisResult:
        """Transcribe and score one clip.

        Args:
            clip: The finalized recording.

        Returns:
            The provider's AnalysisResult.

        Raises:
            ProviderError: On network, auth, or malformed-response failure.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
