"""Embedding boundary validation.

Embedding providers and storage backends hand back vectors in several
shapes (JSON arrays, lists, numpy arrays, packed float32 buffers). Everything
is funnelled through :func:`parse_embedding` once, at the edge, so the rest
of the code only ever sees a finite ``list[float]`` of the right length.
"""

import json
from typing import Any

import numpy as np

from answer_cache.exceptions import InvalidEmbeddingError


def _from_string(raw: str) -> np.ndarray:
    text = raw.strip()
    try:
        return np.asarray(json.loads(text), dtype=np.float64)
    except (json.JSONDecodeError, TypeError, ValueError):
        pass
    # Some stores hand arrays back as bare comma-separated numbers
    try:
        return np.asarray([float(part) for part in text.strip("[]").split(",")], dtype=np.float64)
    except ValueError as e:
        raise InvalidEmbeddingError(f"Unparseable embedding string: {text[:40]!r}") from e


def parse_embedding(raw: Any, dimension: int | None = None) -> list[float]:
    """Convert a raw vector into a validated embedding.

    Args:
        raw: List/tuple of numbers, numpy array, float32 byte buffer,
             JSON array string or comma-separated string
        dimension: Required length; None accepts any non-zero length

    Returns:
        The embedding as a list of floats

    Raises:
        InvalidEmbeddingError: If the vector is missing, unparseable,
            not one-dimensional, non-finite or of the wrong length
    """
    if raw is None:
        raise InvalidEmbeddingError("Embedding is missing")

    if isinstance(raw, (bytes, bytearray, memoryview)):
        buffer = bytes(raw)
        if len(buffer) % 4 != 0:
            raise InvalidEmbeddingError(f"Float32 buffer has odd length {len(buffer)}")
        array = np.frombuffer(buffer, dtype="<f4").astype(np.float64)
    elif isinstance(raw, str):
        array = _from_string(raw)
    elif isinstance(raw, (list, tuple, np.ndarray)):
        try:
            array = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidEmbeddingError(f"Embedding contains non-numeric values: {e}") from e
    else:
        raise InvalidEmbeddingError(f"Unsupported embedding type: {type(raw).__name__}")

    if array.ndim != 1 or array.size == 0:
        raise InvalidEmbeddingError(f"Embedding must be a non-empty flat vector, got shape {array.shape}")

    if not np.all(np.isfinite(array)):
        raise InvalidEmbeddingError("Embedding contains NaN or infinite values")

    if dimension is not None and array.size != dimension:
        raise InvalidEmbeddingError(f"Expected {dimension} dimensions, got {array.size}")

    return array.tolist()
