"""Environment-driven configuration.

Environment variables (a local .env file is honoured):
    MONGODB_URI: Document store connection string (required)
    MONGODB_DATABASE: Database name when the URI does not carry one
    MONGODB_COLLECTION: Reference image collection (default: "celeb_images")
    VECTOR_INDEX: Vector search index name (default: "vector_index")
    MONGODB_TIMEOUT_MS: Server selection / socket timeout (default: 10000)
    AWS_ACCESS_KEY, AWS_SECRET_KEY: Bedrock credentials (optional)
    AWS_REGION: Bedrock region (default: "us-east-1")
    EMBEDDING_MODEL, DESCRIPTION_MODEL: Bedrock model ids
    BEDROCK_CONNECT_TIMEOUT, BEDROCK_READ_TIMEOUT: Seconds
    HOST, PORT: Bind address (default: 0.0.0.0:3001)
    DEBUG: 1/true/on/yes enables debug logging
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_EMBEDDING_MODEL = "amazon.titan-embed-image-v1"
DEFAULT_DESCRIPTION_MODEL = "anthropic.claude-3-sonnet-20240229-v1:0"

TRUTHY = {"1", "true", "on", "yes"}


def parse_bool(value: Optional[str]) -> bool:
    """Interpret an environment flag the way DEBUG is documented."""
    if value is None:
        return False
    return value.strip().lower() in TRUTHY


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup."""

    mongodb_uri: str
    mongodb_database: Optional[str] = None
    mongodb_collection: str = "celeb_images"
    vector_index: str = "vector_index"
    mongodb_timeout_ms: int = 10000

    aws_access_key: Optional[str] = None
    aws_secret_key: Optional[str] = None
    aws_region: str = "us-east-1"
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    description_model: str = DEFAULT_DESCRIPTION_MODEL
    bedrock_connect_timeout: float = 5.0
    bedrock_read_timeout: float = 60.0

    host: str = "0.0.0.0"
    port: int = 3001
    debug: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read from. Defaults to os.environ after loading .env

        Raises:
            ConfigError: If MONGODB_URI is missing or a number does not parse
        """
        if env is None:
            load_dotenv()
            env = os.environ

        mongodb_uri = env.get("MONGODB_URI")
        if not mongodb_uri:
            raise ConfigError("MONGODB_URI environment variable is required")

        return cls(
            mongodb_uri=mongodb_uri,
            mongodb_database=env.get("MONGODB_DATABASE") or None,
            mongodb_collection=env.get("MONGODB_COLLECTION", "celeb_images"),
            vector_index=env.get("VECTOR_INDEX", "vector_index"),
            mongodb_timeout_ms=_int(env, "MONGODB_TIMEOUT_MS", 10000),
            aws_access_key=env.get("AWS_ACCESS_KEY") or None,
            aws_secret_key=env.get("AWS_SECRET_KEY") or None,
            aws_region=env.get("AWS_REGION", "us-east-1"),
            embedding_model=env.get("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            description_model=env.get("DESCRIPTION_MODEL", DEFAULT_DESCRIPTION_MODEL),
            bedrock_connect_timeout=_float(env, "BEDROCK_CONNECT_TIMEOUT", 5.0),
            bedrock_read_timeout=_float(env, "BEDROCK_READ_TIMEOUT", 60.0),
            host=env.get("HOST", "0.0.0.0"),
            port=_int(env, "PORT", 3001),
            debug=parse_bool(env.get("DEBUG")),
        )
