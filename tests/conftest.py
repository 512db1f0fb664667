import base64
import io
import json

import pytest
from PIL import Image

from lookalike.api.description_api import DescriptionClient
from lookalike.api.embedding_api import EMBEDDING_DIMENSION, EmbeddingClient
from lookalike.core.pipeline import SearchPipeline
from lookalike.storage.vector_search import SimilaritySearchClient

EMBEDDING_MODEL = "test-embed"
DESCRIPTION_MODEL = "test-describe"


def make_image_bytes(size=(64, 48), color=(200, 30, 30), fmt="PNG", mode="RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def to_data_url(data: bytes, mimetype: str = "image/png") -> str:
    return f"data:{mimetype};base64," + base64.b64encode(data).decode("utf-8")


class FakeBody:
    def __init__(self, raw: bytes):
        self._raw = raw

    def read(self) -> bytes:
        return self._raw


class FakeRuntime:
    """Stands in for the Bedrock runtime client, keyed by model id."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls: list[tuple[str, dict]] = []

    def invoke_model(self, body, modelId, accept, contentType):
        self.calls.append((modelId, json.loads(body)))
        response = self.responses[modelId]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, bytes):
            return {"body": FakeBody(response)}
        return {"body": FakeBody(json.dumps(response).encode("utf-8"))}


class FakeCollection:
    """Stands in for a pymongo collection supporting aggregate()."""

    def __init__(self, docs=None, error=None):
        self.docs = docs or []
        self.error = error
        self.pipelines: list[list[dict]] = []

    def aggregate(self, pipeline):
        self.pipelines.append(pipeline)
        if self.error is not None:
            raise self.error
        return iter(self.docs)

    def count_documents(self, flt):
        return len(self.docs)


def embedding_response(dimension: int = EMBEDDING_DIMENSION) -> dict:
    return {"embedding": [0.001 * i for i in range(dimension)], "inputTextTokenCount": 0}


def description_response(text: str = "The second image is the closest match.") -> dict:
    return {"content": [{"type": "text", "text": text}], "stop_reason": "end_turn"}


def build_test_pipeline(runtime: FakeRuntime, collection: FakeCollection) -> SearchPipeline:
    return SearchPipeline(
        embedder=EmbeddingClient(runtime, EMBEDDING_MODEL),
        searcher=SimilaritySearchClient(collection),
        describer=DescriptionClient(runtime, DESCRIPTION_MODEL),
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def data_url(png_bytes) -> str:
    return to_data_url(png_bytes)


@pytest.fixture
def stored_images() -> list[str]:
    colors = [(10, 10, 10), (120, 120, 120), (240, 240, 240)]
    return [
        base64.b64encode(make_image_bytes(color=c, fmt="JPEG")).decode("utf-8")
        for c in colors
    ]
