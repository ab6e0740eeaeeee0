"""Cache-backed translation client that never raises."""

from __future__ import annotations

from typing import Optional

from .cache import TranslationCache
from .errors import ErrorCategory, TranslationProviderError
from .policy import FailureSink
from .providers import TranslationProvider
from .structures import Resolution, ResolutionSource


AUTO_SOURCE_LANGUAGE = "auto"


class TranslationClient:
    """Translates single strings through a provider, consulting a cache first.

    Failures are reported to the failure sink and the original text is
    returned, so a broken oracle leaves the page readable in its own
    language. Identical requests that are in flight at the same time are
    not coalesced: each issues its own remote call, and the cache only
    prevents repeats once a result has been stored.
    """

    def __init__(
        self,
        provider: TranslationProvider,
        *,
        cache: Optional[TranslationCache] = None,
        failure_sink: Optional[FailureSink] = None,
        source_language: str = AUTO_SOURCE_LANGUAGE,
    ) -> None:
        self.provider = provider
        self.cache = cache if cache is not None else TranslationCache()
        self.failure_sink = failure_sink if failure_sink is not None else FailureSink()
        self.source_language = source_language or AUTO_SOURCE_LANGUAGE
        self.remote_calls = 0

    async def translate(self, text: str, target_language: str) -> str:
        resolution = await self.resolve(text, target_language)
        return resolution.text

    async def resolve(self, text: str, target_language: str) -> Resolution:
        if not text or not text.strip():
            return Resolution(text=text, source=ResolutionSource.BLANK)

        cached = self.cache.get(text, target_language)
        if cached is not None:
            return Resolution(text=cached, source=ResolutionSource.CACHE)

        self.remote_calls += 1
        try:
            translated = await self.provider.translate(
                text,
                source_language=self.source_language,
                target_language=target_language,
            )
        except TranslationProviderError as exc:
            self.failure_sink.record(
                exc.category,
                f"Could not translate {_preview(text)!r} to {target_language}.",
                str(exc),
            )
            return Resolution(text=text, source=ResolutionSource.FALLBACK)
        except Exception as exc:  # pragma: no cover - provider bug guard
            self.failure_sink.record(
                ErrorCategory.OTHER,
                f"Unexpected error translating {_preview(text)!r} to {target_language}.",
                repr(exc),
            )
            return Resolution(text=text, source=ResolutionSource.FALLBACK)

        if not isinstance(translated, str):
            self.failure_sink.record(
                ErrorCategory.MALFORMED_RESPONSE,
                f"Provider returned {type(translated).__name__} for {_preview(text)!r}.",
            )
            return Resolution(text=text, source=ResolutionSource.FALLBACK)

        self.cache.put(text, target_language, translated)
        self.failure_sink.record_success()
        return Resolution(text=translated, source=ResolutionSource.REMOTE)

    async def aclose(self) -> None:
        await self.provider.aclose()


def _preview(text: str, limit: int = 40) -> str:
    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: limit - 1] + "…"
