"""
Providers module - speech transcription/analysis backends.

Factory function for creating provider instances by name, plus a helper that
lists which providers are usable in a given runtime environment.
"""

from src.core.exceptions import UnknownProviderError
from src.core.models import RuntimeEnvironment

from .base import BaseProvider

__all__ = ["BaseProvider", "available_providers", "create_provider"]


def create_provider(name: str, **kwargs) -> BaseProvider:
    """
    Factory function to create a provider instance by name.

    Args:
        name: Provider name ("openai", "azure", "google", "on_device")
        **kwargs: Provider-specific configuration

    Returns:
        BaseProvider implementation instance

    Raises:
        UnknownProviderError: If the name is unknown
    """
    if name == "openai":
        from .openai import OpenAIProvider

        return OpenAIProvider(**kwargs)
    elif name == "azure":
        from .azure import AzureSpeechProvider

        return AzureSpeechProvider(**kwargs)
    elif name == "google":
        from .google import GoogleSpeechProvider

        return GoogleSpeechProvider(**kwargs)
    elif name == "on_device":
        from .on_device import OnDeviceProvider

        return OnDeviceProvider(**kwargs)
    else:
        raise UnknownProviderError(name)


def available_providers(
    providers: list[BaseProvider], env: RuntimeEnvironment
) -> list[str]:
    """Return display names of the providers usable in ``env``, in order."""
    return [p.display_name for p in providers if p.is_available(env)]
