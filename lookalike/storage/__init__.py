"""Storage layer - MongoDB Atlas vector search."""

from .vector_search import SimilaritySearchClient, connect_database

__all__ = ["SimilaritySearchClient", "connect_database"]
