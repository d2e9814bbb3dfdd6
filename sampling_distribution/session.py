import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional

import numpy as np

from sampling_distribution import sampling
from sampling_distribution.binning import (
    BOUNDED_DOMAIN,
    BinInfo,
    classify,
    create_bin_map,
    get_bins,
    initialize_animation_bins,
    safe_bin_limits,
)
from sampling_distribution.config import (
    POPULATIONS,
    DemoConfig,
    PopulationKind,
    population_kind,
    validate_repetitions,
    validate_sample_size,
)
from sampling_distribution.distributions import BOUNDED_TRIALS, DistributionFamily
from sampling_distribution.exceptions import SdmUnavailableError
from sampling_distribution.histogram import Histogram
from sampling_distribution.presentation import (
    AxisTicks,
    ClearClass,
    DrawBar,
    DrawText,
    PresentationAdapter,
)

logger = logging.getLogger(__name__)

POPULATION_CANVAS = "pop-graph"
SDM_CANVAS = "sdm-graph"

SAMPLE_CLASS = "sample"
MEAN_BLOCK_CLASS = "animatedMean"

TEXT_X, TEXT_Y = 20, 30


class SamplerState(str, Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    LOCKED = "locked"


@dataclass(frozen=True)
class SampleOutcome:
    sample: np.ndarray
    raw_mean: float
    mean: float
    sd: float
    bin: Optional[BinInfo]


class Session:
    """
    One run of the demo: the population and sampling-distribution histograms,
    the animation bins the sample means are stacked into, and the controls'
    current values.

    Every public method finishes all of its state changes before returning.
    Geometry goes to the adapter as events as soon as it is known.
    """

    def __init__(self, adapter: PresentationAdapter, config: DemoConfig = DemoConfig(),
                 seed: Optional[int] = None):
        self.config = config
        self.adapter = adapter
        self.population_kind = PopulationKind.NORMAL
        self.sample_size = config.default_sample_size
        self.repetitions = config.repetition_choices[0]
        self.state = SamplerState.IDLE
        self.sdm_visible = True
        self._seeds = np.random.SeedSequence(seed)

        w, h = config.canvas_width, config.canvas_height
        self.pop_canvas = adapter.create_canvas(POPULATION_CANVAS, w, h)
        self.sdm_canvas = adapter.create_canvas(SDM_CANVAS, w, h)

        preset = self.preset
        self.population = Histogram("population", config.population_fill, preset.mean, preset.sd,
                                    config.bins, self.pop_canvas, w, h, adapter.apply,
                                    family=preset.family)
        self.sdm = Histogram("sdm", config.sdm_fill, preset.mean, self._sem(), config.bins,
                             self.sdm_canvas, w, h, adapter.apply,
                             axis_sd=preset.sd, needs_dataset=False)
        self.animation_bins = np.zeros(0, dtype=int)
        self.bin_map = ()
        self.reset_all()

    @property
    def preset(self):
        return POPULATIONS[self.population_kind]

    @property
    def family(self) -> DistributionFamily:
        return self.preset.family

    @property
    def locked(self) -> bool:
        return self.state == SamplerState.LOCKED

    @property
    def block_height(self) -> float:
        """Pixel height of one sample-mean block; shrinks when many samples are drawn per click."""
        return self.config.block_height / self.repetitions

    def _sem(self) -> float:
        return self.preset.sd / np.sqrt(self.sample_size)

    # ----------------------------
    # Controls
    # ----------------------------
    def change_population(self, kind) -> None:
        kind = population_kind(kind)
        self.population_kind = kind
        preset = self.preset
        logger.info(f"Population changed to {kind.value}")

        self.population.update(preset.mean, preset.sd, self.config.bins, preset.family,
                               bounded=preset.family == DistributionFamily.BOUNDED)
        self._update_sdm()
        if not preset.sdm_available:
            self._lock_sdm()
        self.reset_all()

    def set_sample_size(self, value) -> int:
        n = validate_sample_size(value, self.config)
        self.sample_size = n
        self.reset_all()
        self._update_sdm()
        return n

    def set_repetitions(self, value) -> int:
        r = validate_repetitions(value, self.config)
        self.repetitions = r
        self.reset_all()
        return r

    def set_sdm_visible(self, visible: bool) -> None:
        if visible and not self.preset.sdm_available:
            raise SdmUnavailableError()
        self.sdm_visible = visible
        if visible:
            self.sdm.show()
        else:
            self.sdm.hide()

    def _update_sdm(self):
        preset = self.preset
        self.sdm.update(preset.mean, self._sem(), self.config.bins, DistributionFamily.NORMAL,
                        axis_sd=preset.sd)

    def _lock_sdm(self):
        self.sdm_visible = False
        self.sdm.hide()

    def reset_all(self) -> None:
        """Empties the sampling-distribution track and unlocks sampling."""
        self.animation_bins = initialize_animation_bins(self.sdm, self.config.modifier)
        self.bin_map = create_bin_map(self.sdm, self.animation_bins, self.config.modifier,
                                      self.family)
        emit = self.adapter.apply
        emit(ClearClass(self.pop_canvas, SAMPLE_CLASS))
        emit(ClearClass(self.sdm_canvas, MEAN_BLOCK_CLASS))
        emit(DrawText(self.sdm_canvas, "", TEXT_X, TEXT_Y))
        ticks = self._axis_ticks()
        emit(AxisTicks(self.pop_canvas, ticks))
        emit(AxisTicks(self.sdm_canvas, ticks))
        self.state = SamplerState.IDLE
        self._update_population_text()
        logger.debug(f"Reset: {len(self.bin_map)} animation bins over "
                     f"[{self.bin_map[0][0]}, {self.bin_map[-1][1]})")

    # ----------------------------
    # Sampling
    # ----------------------------
    def sample_once(self, display: bool = True) -> Optional[SampleOutcome]:
        """
        Draws one sample and drops its mean into the sampling distribution.

        Returns None without sampling while locked.
        """
        if self._check_lock():
            return None
        self.state = SamplerState.SAMPLING
        try:
            return self._draw_one(display)
        finally:
            if self.state == SamplerState.SAMPLING:
                self.state = SamplerState.IDLE

    def iter_sample_many(self, repetitions: Optional[int] = None,
                         chunk_size: int = sampling.DEFAULT_CHUNK_SIZE,
                         cancelled: Optional[Callable[[], bool]] = None) -> Iterator[list[SampleOutcome]]:
        """
        Batch mode: yields outcomes in chunks so the caller can redraw in
        between. Stops early once the sampling distribution fills the canvas.
        """
        r = self.repetitions if repetitions is None else int(repetitions)
        if self._check_lock():
            return

        def stop() -> bool:
            return self.locked or (cancelled is not None and cancelled())

        self.state = SamplerState.SAMPLING
        try:
            yield from sampling.repeat_sample(lambda: self._draw_one(display=False), r,
                                              chunk_size=chunk_size, cancelled=stop)
        finally:
            if self.state == SamplerState.SAMPLING:
                self.state = SamplerState.IDLE

    def sample_many(self, repetitions: Optional[int] = None) -> list[SampleOutcome]:
        return [outcome for chunk in self.iter_sample_many(repetitions) for outcome in chunk]

    def sample(self) -> list[SampleOutcome]:
        """What the sample button does for the current number of repetitions."""
        if self.repetitions == 1:
            outcome = self.sample_once(display=True)
            return [] if outcome is None else [outcome]
        return self.sample_many()

    def _draw_one(self, display: bool) -> SampleOutcome:
        rng = np.random.default_rng(self._seeds.spawn(1)[0])
        values = sampling.sample(self.population.data, self.sample_size, rng)
        raw_mean = sampling.mean(values)
        outcome = SampleOutcome(
            sample=values,
            raw_mean=raw_mean,
            mean=sampling.round_number(raw_mean, 2),
            sd=sampling.round_number(sampling.standard_deviation(values), 2),
            bin=classify(self.animation_bins, self.bin_map, raw_mean, self.family),
        )
        if display:
            self._draw_sample(values)
        if outcome.bin is not None:
            self._draw_mean_block(outcome.bin)
        self._update_sample_text(outcome.mean, outcome.sd)
        self._check_lock()
        return outcome

    def _check_lock(self) -> bool:
        """Locks sampling once another block would not fit on the canvas."""
        if self.locked:
            return True
        if self.animation_bins.size and \
                (int(self.animation_bins.max()) + 1) * self.block_height > self.config.canvas_height:
            self.state = SamplerState.LOCKED
            logger.info("Sampling distribution is full; sampling locked until reset")
            return True
        return False

    # ----------------------------
    # Geometry
    # ----------------------------
    def _axis_span(self) -> tuple[float, float]:
        if self.family == DistributionFamily.BOUNDED:
            return BOUNDED_DOMAIN
        return self.sdm.min_bin, self.sdm.min_bin + self.sdm.num_bins * self.sdm.bin_width

    def value_to_pixel(self, value: float) -> float:
        start, stop = self._axis_span()
        return (value - start) / (stop - start) * self.config.canvas_width

    def _axis_ticks(self) -> tuple[tuple[float, str], ...]:
        if self.family == DistributionFamily.BOUNDED:
            values = [round(0.2 * k, 1) for k in range(6)]
        else:
            values = [self.preset.mean + k * self.preset.sd for k in range(-3, 4)]
        return tuple((self.value_to_pixel(v), f"{v:g}") for v in values)

    def _draw_sample(self, values: np.ndarray):
        emit = self.adapter.apply
        emit(ClearClass(self.pop_canvas, SAMPLE_CLASS))
        for i, (x, width, count) in enumerate(self._sample_bars(values)):
            height = min(count * self.config.block_height, self.config.canvas_height)
            emit(DrawBar(self.pop_canvas, f"{SAMPLE_CLASS}:{i}", SAMPLE_CLASS, x,
                         self.config.canvas_height - height, width, height, self.config.sample_fill))

    def _sample_bars(self, values: np.ndarray) -> list[tuple[float, float, int]]:
        w = self.config.canvas_width
        if self.family == DistributionFamily.BOUNDED:
            counts = np.bincount(np.rint(values * BOUNDED_TRIALS).astype(int))
            width = self.value_to_pixel(1.0 / BOUNDED_TRIALS) - self.value_to_pixel(0.0)
            return [(self.value_to_pixel(k / BOUNDED_TRIALS), width, int(c))
                    for k, c in enumerate(counts) if c]
        # One bar per animation bin, placed like the mean blocks drawn for it.
        counts = get_bins(self.population, values)
        counts = counts.reshape(len(self.animation_bins), -1).sum(axis=1)
        width = w / len(self.animation_bins)
        return [(float(safe_bin_limits(round(j * width, 6), width)), width + 1, int(c))
                for j, c in enumerate(counts) if c]

    def _draw_mean_block(self, info: BinInfo):
        w, h = self.config.canvas_width, self.config.canvas_height
        width = w / len(self.animation_bins)
        x = safe_bin_limits(round(self.value_to_pixel(info.lower), 6), width)
        y = h - info.count * self.block_height
        self.adapter.apply(DrawBar(self.sdm_canvas, f"mean:{info.index}:{info.count}",
                                   MEAN_BLOCK_CLASS, float(x), y, width + 1, self.block_height,
                                   self.config.mean_fill, start_y=0.0))

    def _update_population_text(self):
        preset = self.preset
        if self.population_kind == PopulationKind.UNIFORM:
            text = f"Population parameters: mean = {preset.mean:g}"
        elif self.population_kind == PopulationKind.BOUNDED:
            text = f"Population parameters: p = {preset.mean:g}"
        else:
            text = f"Population parameters: mean = {preset.mean:g} sd = {preset.sd:g}"
        self.adapter.apply(DrawText(self.pop_canvas, text, TEXT_X, TEXT_Y, self.config.population_fill))

    def _update_sample_text(self, m: float, sd: float):
        self.adapter.apply(DrawText(self.sdm_canvas, f"Sample statistics: mean = {m:g} sd = {sd:g}",
                                    TEXT_X, TEXT_Y, self.config.sample_fill))
