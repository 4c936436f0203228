"""Image references accepted by the detection boundary.

An ``image_url`` is either a remote URL or an embedded ``data:image/...``
payload.  Providers need a different request shape for each, so the
distinction is made once here.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

DATA_URI_PREFIX = "data:image"


class MissingInputError(ValueError):
    """Raised when no image reference (or search input) was supplied."""
    pass


class MalformedImageError(ValueError):
    """Raised when an embedded payload cannot be decoded."""
    pass


@dataclass(frozen=True)
class ImageSource:
    value: str

    @classmethod
    def parse(cls, value: str | None) -> "ImageSource":
        if value is None or not value.strip():
            raise MissingInputError("image_url required")
        return cls(value.strip())

    @property
    def is_embedded(self) -> bool:
        return self.value.startswith(DATA_URI_PREFIX)

    @property
    def url(self) -> str:
        if self.is_embedded:
            raise ValueError("embedded image has no remote URL")
        return self.value

    @property
    def base64_data(self) -> str:
        """Base64 body of an embedded payload (everything after the comma)."""
        if not self.is_embedded:
            raise ValueError("remote image has no embedded payload")
        _, _, data = self.value.partition(",")
        return data

    def decode(self) -> bytes:
        try:
            return base64.b64decode(self.base64_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedImageError(f"invalid embedded image payload: {exc}") from exc

    def describe(self) -> str:
        """Short label for log lines; never dumps a whole payload."""
        return "uploaded image (base64)" if self.is_embedded else self.value

    @staticmethod
    def embed(data: bytes, mime: str = "image/jpeg") -> str:
        return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
