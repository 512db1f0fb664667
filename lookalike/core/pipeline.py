"""Search pipeline: normalize, embed, search, describe.

Stages run strictly in order and the first failure ends the run. Nothing is
returned unless every stage succeeded.
"""

import logging
import time
from typing import Optional

from ..api.description_api import DescriptionClient
from ..api.embedding_api import EmbeddingClient
from ..storage.vector_search import SimilaritySearchClient
from .models import SearchOutcome
from .normalizer import standardize_data_url

logger = logging.getLogger(__name__)


class SearchPipeline:
    """Orchestrates one lookalike search per call to :meth:`run`.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        searcher: SimilaritySearchClient,
        describer: DescriptionClient,
    ):
        self.embedder = embedder
        self.searcher = searcher
        self.describer = describer

    def run(self, data_url: Optional[str]) -> SearchOutcome:
        """Run every stage on an uploaded data URL.

        Raises:
            ValidationError: If the upload is missing or not valid base64
            DecodeError: If the upload is not a readable image
            UpstreamError: If embedding, search or description fails
        """
        t0 = time.time()

        query_image = standardize_data_url(data_url)
        t_norm = time.time()

        embedding = self.embedder.get_embedding(query_image)
        t_embed = time.time()

        images = self.searcher.search_similar(embedding)
        t_search = time.time()
        logger.info("Vector search returned %d match(es)", len(images))

        # Candidates are returned as stored, without re-normalizing
        description = self.describer.describe(query_image, images)
        t_done = time.time()

        logger.info(
            "Search done in %.3fs (normalize %.3fs, embed %.3fs, search %.3fs, describe %.3fs)",
            t_done - t0,
            t_norm - t0,
            t_embed - t_norm,
            t_search - t_embed,
            t_done - t_search,
        )
        return SearchOutcome(description=description, images=tuple(images))
