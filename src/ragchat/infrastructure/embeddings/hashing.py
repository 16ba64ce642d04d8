import hashlib

import numpy as np

DEFAULT_DIMENSION = 384


def _bucket(token: str, dimension: int) -> int:
    digest = hashlib.md5(token.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") % dimension


def hashed_embedding(text: str, dimension: int = DEFAULT_DIMENSION) -> list[float]:
    """Deterministic bag-of-words vector used when a provider is unreachable.

    Tokens are hashed into ``dimension`` buckets, each occurrence adds
    ``1 / token_count``, and the result is L2-normalized. Empty input
    gives the zero vector.
    """
    vector = np.zeros(dimension, dtype=np.float64)
    tokens = text.lower().split()
    if not tokens:
        return vector.tolist()

    weight = 1.0 / len(tokens)
    for token in tokens:
        vector[_bucket(token, dimension)] += weight

    norm = np.linalg.norm(vector)
    if norm > 0:
        vector /= norm
    return vector.tolist()
