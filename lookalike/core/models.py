"""Request-scoped data models for the search pipeline."""

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class UploadedImage:
    """Raw bytes decoded from the data-URL payload."""

    data: bytes
    mimetype: str = "image/jpeg"


@dataclass(frozen=True)
class NormalizedImage:
    """Upload resized to the fixed resolution and re-encoded as JPEG."""

    data: bytes
    width: int
    height: int
    mimetype: str = "image/jpeg"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")


@dataclass(frozen=True)
class SearchOutcome:
    """Successful result of one pipeline run."""

    description: str
    images: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "images": list(self.images),
        }
