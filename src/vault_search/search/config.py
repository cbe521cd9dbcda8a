"""Search tuning parameters and their environment overrides."""

import os
from dataclasses import dataclass, fields, replace

SKIP_EXTENSIONS: frozenset[str] = frozenset(
    {
        "png",
        "jpg",
        "jpeg",
        "gif",
        "pdf",
        "ico",
        "svg",
        "webp",
        "mp4",
        "mov",
        "avi",
        "mkv",
        "zip",
        "rar",
        "7z",
        "exe",
        "dll",
    }
)

ENV_VAR_PREFIX = "VAULT_SEARCH_"


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for a search session."""

    max_results: int = 200
    max_matches_per_file: int = 3
    context_radius: int = 40  # chars kept on each side of a content match
    debounce_ms: int = 200
    min_content_query_len: int = 2
    concurrency: int = 8
    progress_interval: int = 10  # files scanned between progress updates
    skip_extensions: frozenset[str] = SKIP_EXTENSIONS

    def __post_init__(self):
        for name in ("max_results", "max_matches_per_file", "concurrency", "progress_interval"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")
        for name in ("context_radius", "debounce_ms", "min_content_query_len"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        object.__setattr__(
            self,
            "skip_extensions",
            frozenset(ext.lower().lstrip(".") for ext in self.skip_extensions),
        )

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def _parse_extensions(value: str) -> frozenset[str]:
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def _from_environment() -> dict[str, object]:
    values: dict[str, object] = {}
    for field in fields(SearchConfig):
        env_name = ENV_VAR_PREFIX + field.name.upper()
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        if field.name == "skip_extensions":
            values[field.name] = _parse_extensions(raw)
            continue
        try:
            values[field.name] = int(raw)
        except ValueError:
            raise ValueError(f"{env_name} must be an integer, got {raw!r}") from None
    return values


def get_search_config(**overrides: object) -> SearchConfig:
    """
    Build the search configuration.

    Args:
        overrides: Field values that take precedence over the environment.
                   ``None`` values are ignored so CLI options can be passed through as-is.

    Returns:
        The search configuration.

    Raises:
        ValueError: If a field name is unknown or a value is out of range.
    """
    known = {field.name for field in fields(SearchConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown search settings: {', '.join(sorted(unknown))}")

    values = _from_environment()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return replace(SearchConfig(), **values)
