"""
Maps provider names to backend classes and the credential each one needs.
"""

import logging
from typing import Any, Callable, Dict, Optional, Union

from src.agents.base import TryOnProvider
from src.agents.gemini_agent import GeminiTryOnProvider
from src.agents.placeholder_agent import PlaceholderTryOnProvider
from src.agents.wavespeed_agent import FluxTryOnProvider, SeedreamTryOnProvider
from src.shared.credentials import CredentialResolver
from src.specs.common.enums import CredentialName, ImageProvider
from src.specs.common.errors import InputValidationError

logger = logging.getLogger("lookbook")

_FACTORIES: Dict[ImageProvider, Callable[..., TryOnProvider]] = {
    ImageProvider.GEMINI: GeminiTryOnProvider,
    ImageProvider.SEEDREAM: SeedreamTryOnProvider,
    ImageProvider.FLUX: FluxTryOnProvider,
}

REQUIRED_CREDENTIAL: Dict[ImageProvider, Optional[CredentialName]] = {
    ImageProvider.GEMINI: CredentialName.GEMINI,
    ImageProvider.SEEDREAM: CredentialName.WAVESPEED,
    ImageProvider.FLUX: CredentialName.WAVESPEED,
    ImageProvider.PLACEHOLDER: None,
}


def parse_provider(name: Union[ImageProvider, str]) -> ImageProvider:
    try:
        return ImageProvider(name)
    except ValueError:
        raise InputValidationError(
            f"Unknown provider '{name}'",
            details={"allowed": [p.value for p in ImageProvider]},
        )


def ensure_credential(name: Union[ImageProvider, str], resolver: CredentialResolver) -> Optional[str]:
    """Resolve the provider's API key, raising MissingCredentialError if absent."""
    needed = REQUIRED_CREDENTIAL[parse_provider(name)]
    if needed is None:
        return None
    return resolver.require(needed)


def create_provider(
    name: Union[ImageProvider, str],
    resolver: CredentialResolver,
    *,
    run_trace_id: Optional[str] = None,
    **options: Any,
) -> TryOnProvider:
    """Create a configured provider.

    The credential is resolved before the backend is built so a missing
    key is reported without any network traffic.
    """
    provider = parse_provider(name)
    api_key = ensure_credential(provider, resolver)
    if provider is ImageProvider.PLACEHOLDER:
        backend: TryOnProvider = PlaceholderTryOnProvider()
    else:
        backend = _FACTORIES[provider](api_key, **options)
    logger.info("Created %s provider", provider.value)
    return backend.with_run_trace(run_trace_id)
