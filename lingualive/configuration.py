"""Prepper-backed configuration loader for LinguaLive."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping, Sequence

from dotenv import dotenv_values
from prepper import (
    Field,
    IoError,
    SchemaError,
    SchemaModel,
    ValidationError,
    model_validator,
)
from prepper.config import ConfigInstance
from prepper.loaders import _parse_file, _path_to_source, discover_file_paths
from prepper.merge import merge_layer
from prepper.provenance import ProvenanceRecorder

from .errors import TranslationProviderConfigurationError

APP_NAME = "LinguaLive"


class LinguaLiveConfig(SchemaModel):
    """Schema describing all supported configuration options."""

    LINGUALIVE_PROVIDER: Literal["google", "echo"] = Field(
        default="google",
        description="Translation oracle used for remote calls.",
    )
    LINGUALIVE_ENDPOINT: str | None = Field(
        default=None,
        description="Override for the oracle URL.",
    )
    LINGUALIVE_TIMEOUT: float = Field(
        default=10.0,
        description="Seconds before an oracle request is given up.",
    )
    LINGUALIVE_SOURCE_LANGUAGE: str = Field(default="auto")
    LINGUALIVE_DEFAULT_LANGUAGE: str = Field(default="es")
    LINGUALIVE_PAGE_LANGUAGE: str = Field(default="es")
    LINGUALIVE_STATE_FILE: str | None = Field(default=None)
    LINGUALIVE_PROVIDER_DEBUG: bool = Field(default=False)

    @model_validator(mode="before")
    def _normalise_provider(data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("LINGUALIVE_PROVIDER")
            if isinstance(raw_value, str):
                normalized = raw_value.strip().lower().replace("-", "_")
                synonyms = {
                    "gtx": "google",
                    "google_translate": "google",
                    "noop": "echo",
                    "mock": "echo",
                }
                normalized = synonyms.get(normalized, normalized)
                if normalized not in {"google", "echo"}:
                    normalized = "google"
                data["LINGUALIVE_PROVIDER"] = normalized
        return data


@lru_cache(maxsize=1)
def _load_config_instance(app_dir: Path | None = None) -> ConfigInstance:
    """Load configuration layers once and cache the immutable instance."""

    base_dir = app_dir or Path.cwd()
    try:
        provenance = ProvenanceRecorder()
        combined = _load_discovered_yaml(app_dir=base_dir, provenance=provenance)
        _merge_env_sources(
            combined,
            provenance=provenance,
            app_dir=base_dir,
            schema=LinguaLiveConfig,
        )

        # Every option has a default, so an empty mapping is a valid setup.
        model = LinguaLiveConfig.validate(combined, provenance=provenance)
        _validate_settings(model)

        return ConfigInstance(
            model=model,
            provenance=provenance,
            env_prefix=None,
            schema_cls=LinguaLiveConfig,
        )
    except IoError as exc:
        raise TranslationProviderConfigurationError(
            f"Configuration files could not be read: {exc}"
        ) from exc
    except SchemaError as exc:
        raise TranslationProviderConfigurationError(
            f"Configuration schema error: {exc}"
        ) from exc
    except ValidationError as exc:
        issues = _format_validation_errors(exc.to_dict())
        raise TranslationProviderConfigurationError(issues) from exc


def _load_discovered_yaml(
    *,
    app_dir: Path,
    provenance: ProvenanceRecorder,
) -> dict[str, Any]:
    """Load YAML configuration files using Prepper's discovery rules."""

    result: dict[str, Any] = {}
    discovered = discover_file_paths(
        APP_NAME,
        "yaml",
        app_dir=app_dir,
        extra_paths=None,
    )
    for path, label in discovered:
        parsed = _parse_file(path, "yaml")
        if not isinstance(parsed, Mapping):
            raise IoError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        source = _path_to_source(label, "yaml", path)
        merge_layer(result, parsed, provenance=provenance, source=source, layer="file")
    return result


def _merge_env_sources(
    target: dict[str, Any],
    *,
    provenance: ProvenanceRecorder,
    app_dir: Path,
    schema: type[SchemaModel],
) -> None:
    """Merge .env and process environment variables into the target mapping."""

    allowed = set(schema.__field_infos__.keys())

    def merge_values(values: Mapping[str, str], *, source_prefix: str) -> None:
        for key, value in sorted(values.items()):
            if value is None:
                continue
            if key not in allowed:
                continue
            merge_layer(
                target,
                {key: value},
                provenance=provenance,
                source=f"env:{source_prefix}:{key}",
                layer="env",
            )

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        dotenv_content = dotenv_values(dotenv_path)
        merge_values(
            {k: v for k, v in dotenv_content.items() if v is not None},
            source_prefix=".env",
        )

    merge_values(
        {k: v for k, v in os.environ.items() if isinstance(v, str)},
        source_prefix="process",
    )


def _validate_settings(settings: LinguaLiveConfig) -> None:
    errors: list[str] = []

    endpoint = settings.LINGUALIVE_ENDPOINT
    if endpoint and not endpoint.startswith(("http://", "https://")):
        errors.append("LINGUALIVE_ENDPOINT must be an http:// or https:// URL.")

    if settings.LINGUALIVE_TIMEOUT <= 0:
        errors.append("LINGUALIVE_TIMEOUT must be a positive number of seconds.")

    for name in (
        "LINGUALIVE_SOURCE_LANGUAGE",
        "LINGUALIVE_DEFAULT_LANGUAGE",
        "LINGUALIVE_PAGE_LANGUAGE",
    ):
        if not str(getattr(settings, name) or "").strip():
            errors.append(f"{name} must not be empty.")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise TranslationProviderConfigurationError(
            "Configuration validation errors detected:\n" + bullet_list
        )


def _format_validation_errors(entries: Sequence[dict[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("path") or []
        if isinstance(path, (list, tuple)):
            location = ".".join(str(part) for part in path if part not in {None, ""})
        else:
            location = str(path)
        message = str(entry.get("message") or entry.get("msg") or "Invalid value")
        source = entry.get("source")
        origin = f" (source: {source})" if source else ""
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}{origin}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def get_config(app_dir: Path | None = None) -> ConfigInstance:
    """Return the immutable configuration instance."""

    return _load_config_instance(app_dir=app_dir)


def get_settings(app_dir: Path | None = None) -> LinguaLiveConfig:
    """Return the validated schema model for typed access."""

    return get_config(app_dir=app_dir).model()


def clear_cached_settings() -> None:
    """Forget the cached configuration so the next call reloads every layer."""

    _load_config_instance.cache_clear()
