"""Embedding client for normalized images.

The embedding backend is a Bedrock multimodal embedding model. It accepts a
base64 image and returns a fixed-length vector.
"""

import logging
from typing import Any, Optional

import numpy as np

from ..errors import UpstreamError
from .bedrock import invoke_json

logger = logging.getLogger(__name__)

# Output length requested from the embedding model
EMBEDDING_DIMENSION = 1024


def build_embedding_body(
    image_base64: str,
    text: Optional[str] = None,
    dimension: int = EMBEDDING_DIMENSION,
) -> dict:
    """Build the embedding request payload.

    Args:
        image_base64: Base64-encoded JPEG
        text: Optional text to embed together with the image
        dimension: Requested output vector length

    Returns:
        Request body ready to be serialized as JSON
    """
    body = {
        "inputImage": image_base64,
        "embeddingConfig": {"outputEmbeddingLength": dimension},
    }
    if text:
        body["inputText"] = text
    return body


class EmbeddingClient:
    """Client for the image embedding model.

    Expected model format:
        Request body: {"inputImage": "<base64>", "embeddingConfig": {"outputEmbeddingLength": 1024}}
        Response: {"embedding": [0.1, 0.2, ...], "inputTextTokenCount": 0}
    """

    def __init__(
        self,
        runtime: Any,
        model_id: str,
        dimension: int = EMBEDDING_DIMENSION,
    ):
        """Initialize the embedding client.

        Args:
            runtime: Bedrock runtime client (shared, thread-safe)
            model_id: Bedrock model id of the embedding model
            dimension: Output vector length to request and expect
        """
        self.runtime = runtime
        self.model_id = model_id
        self.dimension = dimension

    def get_embedding(self, image_base64: str, text: Optional[str] = None) -> list[float]:
        """Compute the embedding of a normalized image.

        Args:
            image_base64: Base64-encoded normalized JPEG
            text: Optional text prompt embedded alongside the image

        Returns:
            List of floats of length ``dimension``

        Raises:
            UpstreamError: If the call fails or the response has no usable vector
        """
        body = build_embedding_body(image_base64, text, self.dimension)
        data = invoke_json(self.runtime, self.model_id, body)

        embedding = data.get("embedding")
        if embedding is None:
            raise UpstreamError(f"Response from {self.model_id} has no 'embedding' field")

        try:
            vec = np.asarray(embedding, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise UpstreamError(f"Embedding from {self.model_id} is not numeric") from e

        if vec.shape != (self.dimension,):
            raise UpstreamError(
                f"Embedding from {self.model_id} has shape {vec.shape}, expected ({self.dimension},)"
            )
        if not np.all(np.isfinite(vec)):
            raise UpstreamError(f"Embedding from {self.model_id} contains non-finite values")

        logger.debug("Computed %d-dim embedding", vec.shape[0])
        return vec.tolist()
