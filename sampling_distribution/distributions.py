from enum import Enum
from math import comb

import numpy as np


# Multiplier that turns a density into a bar height in pixels.
DENSITY_SCALE = 1000.0

# Bounded (binomial) population: number of trials and pixel scale of the pmf.
BOUNDED_TRIALS = 10
BOUNDED_SCALE = 400.0


class DistributionFamily(str, Enum):
    NORMAL = "normal"
    UNIFORM = "uniform"
    BOUNDED = "bounded"


# ----------------------------
# Heights per family
# ----------------------------
def normal_height(mean: float, sd: float, x) -> np.ndarray:
    sd = max(float(sd), 1e-12)
    x = np.asarray(x, dtype=float)
    pdf = (1.0 / (sd * np.sqrt(2.0 * np.pi))) * np.exp(-0.5 * ((x - mean) / sd) ** 2)
    return DENSITY_SCALE * pdf


def uniform_support(mean: float, sd: float) -> tuple[float, float]:
    """
    Return (a, b) such that Uniform(a, b) has the given mean and SD.
    """
    half_range = max(float(sd), 1e-12) * np.sqrt(3.0)
    return float(mean) - half_range, float(mean) + half_range


def uniform_height(mean: float, sd: float, x) -> np.ndarray:
    a, b = uniform_support(mean, sd)
    x = np.asarray(x, dtype=float)
    y = np.zeros_like(x)
    mask = (x >= a) & (x <= b)
    y[mask] = DENSITY_SCALE / (b - a)
    return y


def bounded_height(p: float, x, trials: int = BOUNDED_TRIALS) -> np.ndarray:
    """
    Binomial pmf for a proportion x in [0, 1], scaled to pixels.

    x is converted to the nearest success count k = round(x * trials); values
    outside [0, 1] get zero height.
    """
    p = min(max(float(p), 0.0), 1.0)
    x = np.atleast_1d(np.asarray(x, dtype=float))
    k = np.rint(x * trials).astype(int)
    out = np.zeros_like(x)
    for i, ki in enumerate(k):
        if 0 <= ki <= trials:
            out[i] = comb(trials, int(ki)) * p ** ki * (1.0 - p) ** (trials - ki)
    return BOUNDED_SCALE * out


def evaluate(family: DistributionFamily, mean: float, shape: float, x) -> np.ndarray:
    """
    Bar height(s) of a population family at x.

    shape is the standard deviation for NORMAL and UNIFORM and is ignored for
    BOUNDED, whose single parameter is the success probability passed as mean.
    """
    if family == DistributionFamily.NORMAL:
        return normal_height(mean, shape, x)
    if family == DistributionFamily.UNIFORM:
        return uniform_height(mean, shape, x)
    if family == DistributionFamily.BOUNDED:
        return bounded_height(mean, x)
    raise ValueError(f"Unknown distribution: {family}")


def finite_heights(heights, ceiling: float | None = None) -> np.ndarray:
    """Replace NaN/inf and negative heights by zero, optionally capping at ceiling."""
    heights = np.asarray(heights, dtype=float)
    heights = np.where(np.isfinite(heights) & (heights > 0), heights, 0.0)
    if ceiling is not None:
        heights = np.minimum(heights, float(ceiling))
    return heights
