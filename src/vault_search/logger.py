import logging
import os
import sys

LOG_LEVEL_ENV_VAR = "VAULT_SEARCH_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def resolve_log_level(name: str | None) -> str:
    """Level name to configure, falling back to INFO for unknown names."""
    level = (name or DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        return DEFAULT_LOG_LEVEL
    return level


# stdout belongs to the MCP stdio transport, so everything goes to stderr
logging.basicConfig(
    level=resolve_log_level(os.environ.get(LOG_LEVEL_ENV_VAR)),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)

__all__ = ["logging"]
