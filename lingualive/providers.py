"""Translation provider abstractions."""

from __future__ import annotations

import json
import sys
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import httpx

from .errors import (
    MalformedResponseError,
    OracleUnavailableError,
    TranslationProviderConfigurationError,
)


class TranslationProvider(ABC):
    """Abstract adapter for the remote translation oracle."""

    name = "provider"

    @abstractmethod
    async def translate(
        self,
        text: str,
        *,
        source_language: str,
        target_language: str,
    ) -> str:
        """Translate one piece of text or raise `TranslationProviderError`."""

    async def aclose(self) -> None:
        """Release any network resources held by the provider."""


class EchoTranslationProvider(TranslationProvider):
    """A provider that returns the original text (useful for dry runs)."""

    name = "echo"

    async def translate(
        self,
        text: str,
        *,
        source_language: str,
        target_language: str,
    ) -> str:
        return text


class GoogleTranslateProvider(TranslationProvider):
    """Provider backed by the public ``translate_a/single`` endpoint."""

    name = "google"
    DEFAULT_ENDPOINT = "https://translate.googleapis.com/translate_a/single"
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        *,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        debug: bool = False,
    ) -> None:
        self.endpoint = endpoint or self.DEFAULT_ENDPOINT
        self.debug = debug
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.DEFAULT_TIMEOUT
        )

    async def translate(
        self,
        text: str,
        *,
        source_language: str,
        target_language: str,
    ) -> str:
        params = {
            "client": "gtx",
            "sl": source_language or "auto",
            "tl": target_language,
            "dt": "t",
            "q": text,
        }
        self._log_debug("provider.request.params", params)

        try:
            response = await self._client.get(self.endpoint, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise OracleUnavailableError(
                f"Translation service answered with HTTP {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            raise OracleUnavailableError(
                f"Translation service temporarily unavailable — {exc}"
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Translation service returned invalid JSON: {exc}"
            ) from exc
        self._log_debug("provider.response.raw", payload)

        fragments = self._extract_fragments(payload)
        self._log_debug("provider.response.fragments", fragments)
        return "".join(fragments)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _extract_fragments(self, payload: Any) -> List[str]:
        """Pull the translated pieces out of ``[[["Hola", "Hello", ...], ...], ...]``."""

        if not isinstance(payload, list) or not payload:
            raise MalformedResponseError(
                "Translation response malformed: expected a non-empty list."
            )
        entries = payload[0]
        if not isinstance(entries, list):
            raise MalformedResponseError(
                "Translation response malformed: missing fragment list."
            )

        fragments: List[str] = []
        for entry in entries:
            if not isinstance(entry, list) or not entry:
                raise MalformedResponseError(
                    "Translation response malformed: fragments must be lists."
                )
            piece = entry[0]
            if piece is None:
                # Transliteration rows carry no translated text.
                continue
            if not isinstance(piece, str):
                raise MalformedResponseError(
                    "Translation response malformed: fragment text is not a string."
                )
            fragments.append(piece)
        return fragments

    def _log_debug(self, label: str, payload: Any) -> None:
        """Emit structured debug information when enabled."""

        if not self.debug:
            return
        try:
            if isinstance(payload, (dict, list)):
                message = json.dumps(payload, ensure_ascii=False, indent=2)
            else:
                message = str(payload)
        except (TypeError, ValueError):
            message = repr(payload)
        print(f"[lingualive][provider-debug] {label}:\n{message}", file=sys.stderr)


def build_provider(
    name: str | None,
    *,
    endpoint: str | None = None,
    timeout: float | None = None,
    debug: bool = False,
) -> TranslationProvider:
    """Factory to create providers by name."""

    normalized = (name or "google").strip().lower()
    if normalized in {"google", "gtx", "default"}:
        return GoogleTranslateProvider(endpoint=endpoint, timeout=timeout, debug=debug)
    if normalized in {"echo", "noop", "mock"}:
        return EchoTranslationProvider()
    raise TranslationProviderConfigurationError(
        f"Unknown translation provider '{name}'."
    )
