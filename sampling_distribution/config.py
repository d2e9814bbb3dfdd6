from dataclasses import dataclass
from enum import Enum

from sampling_distribution.distributions import DistributionFamily
from sampling_distribution.exceptions import (
    InvalidPopulationError,
    InvalidRepetitionsError,
    InvalidSampleSizeError,
)

APP_VERSION = "2026-10-19 sdm-animation v1"


class PopulationKind(str, Enum):
    NORMAL = "normal"
    NORMAL_NARROW = "normal-narrow"
    UNIFORM = "uniform"
    BOUNDED = "bounded"


@dataclass(frozen=True)
class PopulationPreset:
    label: str
    family: DistributionFamily
    mean: float
    sd: float
    # Whether the theoretical sampling distribution can be shown for it.
    sdm_available: bool


POPULATIONS = {
    PopulationKind.NORMAL: PopulationPreset("Normal", DistributionFamily.NORMAL, 100.0, 10.0, True),
    PopulationKind.NORMAL_NARROW: PopulationPreset("Normal (narrow)", DistributionFamily.NORMAL, 100.0, 2.0, True),
    PopulationKind.UNIFORM: PopulationPreset("Uniform", DistributionFamily.UNIFORM, 100.0, 10.0, False),
    PopulationKind.BOUNDED: PopulationPreset("Binomial (p = 0.10)", DistributionFamily.BOUNDED, 0.10, 0.30, False),
}


@dataclass(frozen=True)
class DemoConfig:
    bins: int = 1000
    # Population bins per animation bin of the sampling distribution.
    modifier: int = 10
    default_sample_size: int = 10
    min_sample_size: int = 2
    max_sample_size: int = 100
    repetition_choices: tuple[int, ...] = (1, 25)
    canvas_width: float = 800.0
    canvas_height: float = 200.0
    # Height of one stacked sample-mean block when one sample is drawn per click.
    block_height: float = 10.0
    population_fill: str = "steelblue"
    sdm_fill: str = "green"
    sample_fill: str = "#ff8c00"
    mean_fill: str = "red"


def graph_dimensions(parent_width: float) -> tuple[float, float]:
    """
    Width and height of each graph for a container of the given width.
    """
    width = min(parent_width - 200, 800)
    height = min((width * 4) / 16, 450)
    return float(width), float(height)


def population_kind(value) -> PopulationKind:
    try:
        return PopulationKind(value)
    except ValueError:
        raise InvalidPopulationError(value) from None


def validate_sample_size(value, config: DemoConfig = DemoConfig()) -> int:
    """
    Parses a sample size typed by the user.

    Accepts ints and integer strings in [min_sample_size, max_sample_size].
    """
    low, high = config.min_sample_size, config.max_sample_size
    if isinstance(value, bool):
        raise InvalidSampleSizeError(value, low, high)
    if isinstance(value, str):
        text = value.strip()
        if not text.lstrip("+-").isdecimal():
            raise InvalidSampleSizeError(value, low, high)
        try:
            n = int(text)
        except ValueError:
            raise InvalidSampleSizeError(value, low, high) from None
    elif isinstance(value, int):
        n = value
    elif isinstance(value, float) and value.is_integer():
        n = int(value)
    else:
        raise InvalidSampleSizeError(value, low, high)
    if n < low or n > high:
        raise InvalidSampleSizeError(value, low, high)
    return n


def validate_repetitions(value, config: DemoConfig = DemoConfig()) -> int:
    try:
        r = int(value)
    except (TypeError, ValueError):
        raise InvalidRepetitionsError(value, config.repetition_choices) from None
    if r not in config.repetition_choices:
        raise InvalidRepetitionsError(value, config.repetition_choices)
    return r
