import logging
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_GEMINI_MODELS = [
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
]

RETRIABLE_MARKERS = (
    "429",
    "too many requests",
    "resource exhausted",
    "rate limit",
    "rate_limit",
    "quota",
    "unavailable",
    "overloaded",
    "timeout",
    "timed out",
    "500",
    "502",
    "503",
    "504",
)

NOT_FOUND_MARKERS = ("404", "not found")


def flat_model_name(name: str) -> str:
    """Strip the ``models/`` style prefix from a model name."""
    return name.rsplit("/", 1)[-1] if name and "/" in name else name


class AllCandidatesFailedError(Exception):
    """Raised when a candidate list is empty."""


class ModelFallbackStrategy:
    """Ordered model fallback with a retriable/fatal classifier.

    Candidates are tried in order. An error classified as retriable (or as
    an unknown model) moves on to the next candidate; any other error
    stops the loop. The last error is re-raised when nothing succeeds.
    """

    def __init__(
        self,
        preferred: Iterable[str] = DEFAULT_GEMINI_MODELS,
        retriable_markers: Iterable[str] = RETRIABLE_MARKERS,
    ):
        self._preferred = list(preferred)
        self._retriable_markers = tuple(retriable_markers)

    def candidates(self, requested: str, available: Iterable[str] = ()) -> list[str]:
        """Requested model, then preferred defaults, then everything else."""
        ordered = [flat_model_name(requested), *self._preferred]
        ordered.extend(flat_model_name(n) for n in available)

        seen: set[str] = set()
        result = []
        for name in ordered:
            if not name or name in seen:
                continue
            seen.add(name)
            result.append(name)
        return result

    def is_retriable(self, error: BaseException) -> bool:
        message = str(error).lower()
        return any(marker in message for marker in self._retriable_markers)

    def should_try_next(self, error: BaseException) -> bool:
        message = str(error).lower()
        is_not_found = any(marker in message for marker in NOT_FOUND_MARKERS)
        return is_not_found or self.is_retriable(error)

    async def run(
        self,
        candidates: list[str],
        attempt: Callable[[str], Awaitable[T]],
    ) -> T:
        """Call ``attempt`` for each candidate until one succeeds."""
        last_error: Optional[BaseException] = None
        for candidate in candidates:
            try:
                return await attempt(candidate)
            except Exception as e:
                last_error = e
                if not self.should_try_next(e):
                    logger.warning(f"Model {candidate} failed with non-retriable error: {e}")
                    break
                logger.warning(f"Model {candidate} failed, trying next candidate: {e}")

        if last_error is None:
            raise AllCandidatesFailedError("No candidate models to try")
        raise last_error
