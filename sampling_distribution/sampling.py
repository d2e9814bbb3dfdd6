import logging
from typing import Callable, Iterator, Optional, TypeVar

import numpy as np

from sampling_distribution.exceptions import SamplingError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CHUNK_SIZE = 5


def sample(dataset, n: int, rng: np.random.Generator) -> np.ndarray:
    """
    Draws n values uniformly, with replacement, from dataset.
    """
    dataset = np.asarray(dataset, dtype=float)
    if int(n) < 1:
        raise SamplingError(f"Sample size must be at least 1, got {n}")
    if dataset.size == 0:
        raise SamplingError("Cannot sample from an empty dataset")
    return rng.choice(dataset, size=int(n), replace=True)


def mean(values) -> float:
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        raise SamplingError("Mean of an empty sample")
    return float(values.mean())


def standard_deviation(values) -> float:
    """Sample standard deviation (n - 1 denominator)."""
    values = np.asarray(values, dtype=float)
    if values.size < 2:
        raise SamplingError("Standard deviation needs at least two values")
    return float(values.std(ddof=1))


def round_number(value: float, digits: int = 2) -> float:
    return round(float(value), digits)


def repeat_sample(draw_once: Callable[[], T], repetitions: int,
                  chunk_size: int = DEFAULT_CHUNK_SIZE,
                  cancelled: Optional[Callable[[], bool]] = None) -> Iterator[list[T]]:
    """
    Calls draw_once repetitions times, yielding the outcomes every chunk_size
    calls so the caller can redraw between chunks.

    cancelled is checked before every call; once it returns True the remaining
    repetitions are skipped and the partial chunk is yielded.
    """
    chunk_size = max(int(chunk_size), 1)
    chunk: list[T] = []
    done = 0
    for _ in range(int(repetitions)):
        if cancelled is not None and cancelled():
            logger.info(f"Batch cancelled after {done} of {repetitions} samples")
            break
        chunk.append(draw_once())
        done += 1
        if len(chunk) == chunk_size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk
