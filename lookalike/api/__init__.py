"""External API integrations - Bedrock embedding and description clients."""

from .bedrock import create_runtime_client, invoke_json
from .embedding_api import EmbeddingClient, build_embedding_body, EMBEDDING_DIMENSION
from .description_api import (
    DescriptionClient,
    build_description_body,
    FALLBACK_DESCRIPTION,
)

__all__ = [
    "create_runtime_client",
    "invoke_json",
    "EmbeddingClient",
    "build_embedding_body",
    "EMBEDDING_DIMENSION",
    "DescriptionClient",
    "build_description_body",
    "FALLBACK_DESCRIPTION",
]
