"""Core business logic - data models, normalization and the search pipeline."""

from .models import UploadedImage, NormalizedImage, SearchOutcome
from .normalizer import standardize_data_url
from .pipeline import SearchPipeline

__all__ = ["UploadedImage", "NormalizedImage", "SearchOutcome", "standardize_data_url", "SearchPipeline"]
