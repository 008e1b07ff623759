"""
Project provider abstraction layer for GitHub Projects Analyzer.

This module provides a unified interface for fetching project snapshots and
writing item updates, so the analysis engine receives its fetch capability
instead of reaching for a process-wide client.
"""

from gh_projects_analyzer.providers.base import BaseProjectProvider
from gh_projects_analyzer.providers.github import GitHubProjectsProvider

__all__ = [
    "BaseProjectProvider",
    "GitHubProjectsProvider",
    "get_provider",
    "register_provider",
    "list_supported_providers",
]

# Registry of supported providers
_PROVIDERS: dict[str, type[BaseProjectProvider]] = {
    "github": GitHubProjectsProvider,
}


def get_provider(platform: str = "github", **kwargs) -> BaseProjectProvider:
    """
    Factory function to get a provider instance.

    Args:
        platform: Platform name. Default: 'github'
        **kwargs: Provider-specific configuration (e.g., token, page_size)

    Returns:
        Initialized provider instance

    Raises:
        ValueError: If platform is not supported

    Example:
        >>> provider = get_provider("github", token="ghp_xxx")
        >>> snapshot = await provider.fetch_item_snapshot("PVT_xxx")
    """
    platform_lower = platform.lower()

    if platform_lower not in _PROVIDERS:
        supported = ", ".join(sorted(_PROVIDERS.keys()))
        raise ValueError(
            f"Unsupported platform: {platform}. Supported platforms: {supported}"
        )

    provider_class = _PROVIDERS[platform_lower]
    return provider_class(**kwargs)


def register_provider(platform: str, provider_class: type[BaseProjectProvider]) -> None:
    """
    Register a custom provider.

    Args:
        platform: Platform identifier (e.g., 'gitea')
        provider_class: Class implementing BaseProjectProvider interface

    Raises:
        TypeError: If provider_class doesn't inherit from BaseProjectProvider
    """
    if not issubclass(provider_class, BaseProjectProvider):
        raise TypeError(
            f"Provider class must inherit from BaseProjectProvider, "
            f"got {type(provider_class)}"
        )

    _PROVIDERS[platform.lower()] = provider_class


def list_supported_providers() -> list[str]:
    """List all registered platform identifiers, sorted."""
    return sorted(_PROVIDERS.keys())
