"""Heuristics that pick a transcription backend for a request."""

import logging
from collections.abc import Callable, Mapping

from multicloud_s2t.exceptions import ProviderSelectionError

from .capabilities import CAPABILITIES, BackendCapabilities
from .locations import get_file_type
from .models import Provider, TranscriptionRequest

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = Provider.AWS

CapabilityCheck = Callable[[BackendCapabilities], bool]


def select_provider(
    request: TranscriptionRequest,
    source: str,
    capabilities: Mapping[Provider, BackendCapabilities] = CAPABILITIES,
    default_provider: Provider = DEFAULT_PROVIDER,
) -> TranscriptionRequest:
    """
    Chooses the backend that should transcribe ``source``.

    Features only one backend offers decide first, in this order: language
    identification, content redaction, then the punctuation and profanity
    options. Otherwise the backend supporting the source's file type is used,
    falling back to ``default_provider`` when none or several do.

    Args:
        request: Options of the call. An explicit provider is kept as is.
        source: Source location, used for its file extension.
        capabilities: Registry of the backends that may be chosen.
        default_provider: Tie-break for the file type rule.

    Returns:
        A copy of ``request`` with ``provider`` set.

    Raises:
        ProviderSelectionError: If no backend offers a required feature.
    """
    if request.provider != Provider.UNSPECIFIED:
        return request

    provider = _select(request, source, capabilities, default_provider)
    logger.info(
        "Provider selected",
        extra={"provider": provider.value, "source": source},
    )
    return request.model_copy(update={"provider": provider})


def _select(
    request: TranscriptionRequest,
    source: str,
    capabilities: Mapping[Provider, BackendCapabilities],
    default_provider: Provider,
) -> Provider:
    redaction_requested = not request.content_redaction.is_empty()

    if not request.language_code:
        checks: list[CapabilityCheck] = [
            (lambda c: c.multi_language_identification)
            if request.identify_multiple_languages
            else (lambda c: c.language_identification)
        ]
        if redaction_requested:
            checks.append(lambda c: c.content_redaction)
        return _only_backend_with(
            capabilities, checks, "automatic language identification"
        )

    if redaction_requested:
        return _only_backend_with(
            capabilities, [lambda c: c.content_redaction], "content redaction"
        )

    if request.requests_gcp_features():
        checks = []
        if request.profanity_filter:
            checks.append(lambda c: c.profanity_filter)
        if request.enable_automatic_punctuation:
            checks.append(lambda c: c.automatic_punctuation)
        if request.enable_spoken_punctuation:
            checks.append(lambda c: c.spoken_punctuation)
        if request.enable_spoken_emojis:
            checks.append(lambda c: c.spoken_emojis)
        return _only_backend_with(
            capabilities, checks, "punctuation and profanity options"
        )

    file_type = get_file_type(source)
    supporting = [
        provider
        for provider, caps in capabilities.items()
        if caps.supports_file_type(file_type)
    ]
    if len(supporting) == 1:
        return supporting[0]
    if not supporting:
        logger.warning(
            "No backend declares support for the file type, using default",
            extra={"file_type": file_type, "provider": default_provider.value},
        )
    return default_provider


def _only_backend_with(
    capabilities: Mapping[Provider, BackendCapabilities],
    checks: list[CapabilityCheck],
    feature: str,
) -> Provider:
    for provider, caps in capabilities.items():
        if all(check(caps) for check in checks):
            return provider
    raise ProviderSelectionError(f"no backend supports {feature}")
