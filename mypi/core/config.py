import logging
import os
import tomllib
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

VERSION = "0.4.0"


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


class Settings:
    # HTTP
    USER_AGENT: str = os.getenv("USER_AGENT", f"mypi/{VERSION} (+https://github.com/XYenon/mypi)")
    MAX_REDIRECTS: int = int(os.getenv("MAX_REDIRECTS", "5"))
    # None means no transport timeout; cancellation comes from the host
    REQUEST_TIMEOUT: Optional[float] = _optional_float("REQUEST_TIMEOUT")

    # Remote rendering proxy, the original URL is appended verbatim
    READER_PROXY_URL: str = os.getenv("READER_PROXY_URL", "https://r.jina.ai/")

    # Extraction thresholds
    MIN_PAYLOAD_CHARS: int = int(os.getenv("MIN_PAYLOAD_CHARS", "50"))
    MIN_ARTICLE_CHARS: int = int(os.getenv("MIN_ARTICLE_CHARS", "100"))

    # Tool suggested to the agent when every strategy fails
    FALLBACK_TOOL: str = os.getenv("FALLBACK_TOOL", "agent-browser")

settings = Settings()


class SearxngConfig(BaseModel):
    """Connection settings for the SearXNG instance used by web_search."""

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    auth_type: Literal["none", "basic", "bearer"] = "none"
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None


def agent_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    """Directory holding mypi.toml: $PI_CODING_AGENT_DIR or ~/.pi/agent"""
    env = os.environ if env is None else env
    configured = env.get("PI_CODING_AGENT_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".pi" / "agent"


def load_searxng_config(env: Optional[Mapping[str, str]] = None) -> SearxngConfig:
    """
    Read the [searxng] table from mypi.toml.

    Both snake_case and camelCase keys are accepted. A missing file, a
    malformed file or invalid values all produce the unconfigured default so
    that loading the plugin never fails.
    """
    config_path = agent_dir(env) / "mypi.toml"
    if not config_path.is_file():
        return SearxngConfig()

    try:
        with config_path.open("rb") as fh:
            parsed = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to parse mypi.toml from %s: %s", config_path, e)
        return SearxngConfig()

    section = parsed.get("searxng")
    if not isinstance(section, dict):
        return SearxngConfig()

    try:
        return SearxngConfig(
            base_url=section.get("base_url") or section.get("baseUrl") or "",
            auth_type=section.get("auth_type") or section.get("authType") or "none",
            username=section.get("username"),
            password=section.get("password"),
            token=section.get("token"),
        )
    except ValidationError as e:
        logger.warning("Invalid [searxng] section in %s: %s", config_path, e)
        return SearxngConfig()
