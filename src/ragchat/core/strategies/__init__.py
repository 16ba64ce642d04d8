"""Provider call strategies."""
from .fallback import (
    DEFAULT_GEMINI_MODELS,
    AllCandidatesFailedError,
    ModelFallbackStrategy,
    flat_model_name,
)

__all__ = [
    "DEFAULT_GEMINI_MODELS",
    "AllCandidatesFailedError",
    "ModelFallbackStrategy",
    "flat_model_name",
]
