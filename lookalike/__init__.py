"""Lookalike Search - find stored images that resemble an upload and describe why.

Package structure:
    lookalike/
    ├── cli.py              # Command-line interface
    ├── config.py           # Environment settings
    ├── errors.py           # Error taxonomy
    ├── logging_utils.py    # Console logging
    ├── core/               # Core business logic
    │   ├── models.py       # Request-scoped data models
    │   ├── normalizer.py   # Data-URL decoding and image normalization
    │   └── pipeline.py     # Normalize -> embed -> search -> describe
    ├── storage/            # Data access
    │   └── vector_search.py # MongoDB Atlas vector search
    ├── api/                # External integrations
    │   ├── bedrock.py      # Bedrock runtime client
    │   ├── embedding_api.py # Image embedding client
    │   └── description_api.py # Multimodal description client
    └── server/             # HTTP surface
        ├── app.py          # FastAPI application
        └── schemas.py      # Request/response models
"""

from .config import Settings
from .errors import (
    LookalikeError,
    ConfigError,
    ValidationError,
    DecodeError,
    UpstreamError,
)
from .core.models import UploadedImage, NormalizedImage, SearchOutcome
from .core.normalizer import (
    extract_payload,
    is_valid_base64,
    decode_upload,
    normalize_image,
    standardize_data_url,
)
from .core.pipeline import SearchPipeline
from .storage.vector_search import SimilaritySearchClient, connect_database
from .api.embedding_api import EmbeddingClient, EMBEDDING_DIMENSION
from .api.description_api import DescriptionClient, FALLBACK_DESCRIPTION

__all__ = [
    "Settings",
    # Errors
    "LookalikeError",
    "ConfigError",
    "ValidationError",
    "DecodeError",
    "UpstreamError",
    # Core
    "UploadedImage",
    "NormalizedImage",
    "SearchOutcome",
    "extract_payload",
    "is_valid_base64",
    "decode_upload",
    "normalize_image",
    "standardize_data_url",
    "SearchPipeline",
    # Storage
    "SimilaritySearchClient",
    "connect_database",
    # API
    "EmbeddingClient",
    "EMBEDDING_DIMENSION",
    "DescriptionClient",
    "FALLBACK_DESCRIPTION",
]
