"""MongoDB Atlas vector search over the reference image collection.

Each reference document holds an ``embeddings`` vector and a base64 ``image``.
The service only reads from the collection.
"""

import logging
from typing import Optional, Sequence

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ..config import Settings
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

EMBEDDING_PATH = "embeddings"
IMAGE_FIELD = "image"
NUM_CANDIDATES = 15
RESULT_LIMIT = 3


def connect_database(settings: Settings) -> tuple[MongoClient, Database]:
    """Open the shared MongoDB client and verify the cluster answers.

    The client keeps a connection pool and is safe to share between
    concurrent requests.

    Raises:
        UpstreamError: If the URI is invalid, the cluster cannot be reached
            or the ping is not ok
    """
    timeout = settings.mongodb_timeout_ms
    try:
        client = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=timeout,
            connectTimeoutMS=timeout,
            socketTimeoutMS=timeout,
        )
    except PyMongoError as e:
        raise UpstreamError(f"Invalid MongoDB configuration: {e}") from e

    try:
        db = client.get_default_database(default=settings.mongodb_database)
        pong = db.command("ping")
    except PyMongoError as e:
        client.close()
        raise UpstreamError(f"Could not connect to MongoDB: {e}") from e

    if pong.get("ok") != 1:
        client.close()
        raise UpstreamError("Cluster connection is not okay!")

    logger.info("Connected to MongoDB database '%s'", db.name)
    return client, db


def ping(db: Database) -> bool:
    """Return True if the cluster answers a ping."""
    try:
        return db.command("ping").get("ok") == 1
    except PyMongoError as e:
        logger.warning("MongoDB ping failed: %s", e)
        return False


def build_search_pipeline(
    query_vector: Sequence[float],
    index_name: str,
    num_candidates: int = NUM_CANDIDATES,
    limit: int = RESULT_LIMIT,
) -> list[dict]:
    """Aggregation stages for an approximate nearest-neighbour query."""
    return [
        {
            "$vectorSearch": {
                "index": index_name,
                "path": EMBEDDING_PATH,
                "queryVector": list(query_vector),
                "numCandidates": num_candidates,
                "limit": limit,
            }
        },
        {"$project": {IMAGE_FIELD: 1}},
    ]


class SimilaritySearchClient:
    """Finds the stored images closest to a query embedding."""

    def __init__(
        self,
        collection: Collection,
        index_name: str = "vector_index",
        num_candidates: int = NUM_CANDIDATES,
        limit: int = RESULT_LIMIT,
    ):
        """Initialize the search client.

        Args:
            collection: Reference image collection
            index_name: Name of the Atlas vector search index
            num_candidates: Candidate pool size before final ranking
            limit: Maximum number of results
        """
        self.collection = collection
        self.index_name = index_name
        self.num_candidates = num_candidates
        self.limit = limit

    @classmethod
    def from_database(cls, db: Database, settings: Settings) -> "SimilaritySearchClient":
        return cls(db[settings.mongodb_collection], index_name=settings.vector_index)

    def search_similar(self, query_vector: Sequence[float]) -> list[str]:
        """Find the stored images nearest to the query vector.

        Args:
            query_vector: Embedding of the normalized query image

        Returns:
            Base64 images, closest first. May hold fewer than ``limit`` entries
            or none at all.

        Raises:
            UpstreamError: If the query fails
        """
        pipeline = build_search_pipeline(
            query_vector, self.index_name, self.num_candidates, self.limit
        )
        try:
            docs = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            raise UpstreamError(f"Vector search failed: {e}") from e

        images = []
        for doc in docs[: self.limit]:
            image: Optional[str] = doc.get(IMAGE_FIELD)
            if image:
                images.append(image)
            else:
                logger.warning("Skipping match %s without an image field", doc.get("_id"))
        return images

    def count(self) -> int:
        """Number of reference documents in the collection."""
        try:
            return self.collection.count_documents({})
        except PyMongoError as e:
            raise UpstreamError(f"Count failed: {e}") from e
