"""Multimodal description of how a query image resembles its matches."""

import logging
from typing import Any, Sequence

from .bedrock import invoke_json

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"
MAX_TOKENS = 1000
SYSTEM_PROMPT = "Please act as face comparison analyzer."
COMPARISON_PROMPT = (
    "Please let the user know how their first image is similar to the other 3 "
    "and which one is the most similar?"
)
FALLBACK_DESCRIPTION = "No description available"


def image_block(data: str, media_type: str = "image/jpeg") -> dict:
    """Wrap base64 image data as a message content block."""
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": media_type,
            "data": data,
        },
    }


def build_description_body(query_image: str, candidate_images: Sequence[str]) -> dict:
    """Build the generation request: query image, candidates in order, then the prompt."""
    content = [image_block(query_image)]
    content.extend(image_block(data) for data in candidate_images)
    content.append({"type": "text", "text": COMPARISON_PROMPT})

    return {
        "anthropic_version": ANTHROPIC_VERSION,
        "max_tokens": MAX_TOKENS,
        "system": SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": content}],
    }


def first_text(response: dict) -> str:
    """Return the text of the first content block, or the fallback string."""
    content = response.get("content") or []
    if not isinstance(content, list) or not content:
        return FALLBACK_DESCRIPTION
    first = content[0]
    text = first.get("text") if isinstance(first, dict) else None
    return text or FALLBACK_DESCRIPTION


class DescriptionClient:
    """Client for the multimodal generation model."""

    def __init__(self, runtime: Any, model_id: str):
        self.runtime = runtime
        self.model_id = model_id

    def describe(self, query_image: str, candidate_images: Sequence[str]) -> str:
        """Describe how the query image resembles each candidate.

        Args:
            query_image: Base64 of the normalized query JPEG
            candidate_images: Base64 of up to three matches, closest first

        Returns:
            Free text from the model, or FALLBACK_DESCRIPTION when it returned no text

        Raises:
            UpstreamError: If the call fails
        """
        body = build_description_body(query_image, candidate_images)
        data = invoke_json(self.runtime, self.model_id, body)

        description = first_text(data)
        if description == FALLBACK_DESCRIPTION:
            logger.warning("Model %s returned no text content", self.model_id)
        return description
