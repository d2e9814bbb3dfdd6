import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from sampling_distribution.distributions import DistributionFamily

if TYPE_CHECKING:
    from sampling_distribution.histogram import Histogram

logger = logging.getLogger(__name__)

NUM_SDS = 6

# Bin edges and classified values are compared at this many decimals.
BIN_PRECISION = 5

# Values this close to an edge are treated as sitting on it.
EDGE_TOLERANCE = 0.01

# Fixed domain of the bounded (proportion) animation track.
BOUNDED_DOMAIN = (0.0, 1.1)

BinMap = tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class BinInfo:
    index: int
    lower: float
    count: int


def compute_bin_width(num_bins: int, sd: float, num_sds: int = NUM_SDS) -> float:
    """
    Computes the numerical bin width for a histogram so that num_bins bins
    cover num_sds standard deviations.
    """
    return (num_sds / num_bins) * sd


def compute_min_bin(num_bins: int, mean: float, bin_width: float) -> float:
    """Lowest value covered by a histogram centred on mean."""
    return mean - (num_bins / 2) * bin_width


def initialize_animation_bins(histogram: "Histogram", modifier: int = 1) -> np.ndarray:
    if modifier < 1 or histogram.num_bins % modifier:
        raise ValueError(f"Modifier {modifier} does not divide {histogram.num_bins} bins")
    return np.zeros(histogram.num_bins // modifier, dtype=int)


def create_bin_map(histogram: "Histogram", animation_bins: Sequence[int], modifier: int = 1,
                   family: DistributionFamily = DistributionFamily.NORMAL) -> BinMap:
    """
    Maps each animation bin index to its [lower, upper) value range.

    The bounded family ignores the histogram geometry and splits the fixed
    proportion domain instead.
    """
    n = len(animation_bins)
    if family == DistributionFamily.BOUNDED:
        start, stop = BOUNDED_DOMAIN
        step = (stop - start) / n
    else:
        start = histogram.min_bin
        step = histogram.bin_width * modifier
    edges = [round(start + i * step, BIN_PRECISION) for i in range(n + 1)]
    return tuple((edges[i], edges[i + 1]) for i in range(n))


def classify(bins: np.ndarray, bin_map: BinMap, value: float,
             family: DistributionFamily = DistributionFamily.NORMAL) -> Optional[BinInfo]:
    """
    Puts a value in its animation bin and returns the bin's new count.

    Bins are scanned once in ascending order. A value on (or within tolerance
    of) an upper edge is left for the next bin's lower edge, so a value is
    counted at most once. Returns None, leaving bins untouched, when no bin
    accepts the value.
    """
    value = round(float(value), BIN_PRECISION)
    for i, (lower, upper) in enumerate(bin_map):
        tolerance = min(EDGE_TOLERANCE, (upper - lower) / 2)
        if lower > value or upper < value:
            continue
        elif lower < value < upper:
            return _count(bins, i, lower)
        elif abs(value - upper) < tolerance:
            continue
        elif abs(value - lower) < tolerance:
            return _count(bins, i, lower)
        else:
            break
    span = f"[{bin_map[0][0]}, {bin_map[-1][1]})" if bin_map else "an empty bin map"
    logger.error(f"Binning error for {value} ({family.value}): outside {span}")
    return None


def _count(bins: np.ndarray, index: int, lower: float) -> BinInfo:
    bins[index] += 1
    return BinInfo(index=index, lower=lower, count=int(bins[index]))


def safe_bin_limits(value: float, bin_width: float) -> int:
    """
    Snaps a pixel position to the bin grid: rounds up to the next multiple of
    bin_width, then steps back one pixel.
    """
    return int(math.ceil(value / bin_width) * bin_width) - 1


def get_bins(histogram: "Histogram", data) -> np.ndarray:
    """
    Bins raw values into a histogram's own bins.

    Values outside the histogram range are dropped.
    """
    counts = np.zeros(histogram.num_bins, dtype=int)
    data = np.asarray(data, dtype=float)
    if data.size == 0:
        return counts
    # Rounded so a value on a shared edge lands in the upper bin, as in classify.
    offsets = np.round((data - histogram.min_bin) / histogram.bin_width, BIN_PRECISION)
    idx = np.floor(offsets).astype(int)
    idx = idx[(idx >= 0) & (idx < histogram.num_bins)]
    np.add.at(counts, idx, 1)
    return counts
