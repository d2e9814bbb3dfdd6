import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

import numpy as np

from sampling_distribution.binning import BOUNDED_DOMAIN, compute_bin_width, compute_min_bin
from sampling_distribution.distributions import (
    BOUNDED_TRIALS,
    DistributionFamily,
    evaluate,
    finite_heights,
)
from sampling_distribution.presentation import ClearClass, DrawBar, Event, UpdateBar

logger = logging.getLogger(__name__)

BOUNDED_BINS = 10


class TrackMode(str, Enum):
    CONTINUOUS = "continuous"
    BOUNDED = "bounded"


@dataclass
class BarTrack:
    heights: np.ndarray = field(default_factory=lambda: np.zeros(0))
    bars: list[str] = field(default_factory=list)


class Histogram:
    """
    A histogram of a distribution drawn on one canvas.

    Only one bar track is populated at a time: the continuous track (num_bins
    bars across mean +/- 3 axis SDs) or the bounded track (BOUNDED_BINS bars
    across the proportion domain). Switching track zeroes the other one. Bar
    handles are kept for the life of the histogram and re-used on every update.

    The histogram's synthetic dataset repeats each bar's representative value
    once per pixel of bar height; it is the population later samples are drawn
    from, and is not kept when needs_dataset is False.
    """

    def __init__(self, id: str, fill: str, mean: float, sd: float, num_bins: int,
                 canvas: str, canvas_width: float, canvas_height: float,
                 emit: Callable[[Event], None],
                 family: DistributionFamily = DistributionFamily.NORMAL,
                 axis_sd: Optional[float] = None, needs_dataset: bool = True):
        self.id = id
        self.fill = fill
        self.canvas = canvas
        self.canvas_width = float(canvas_width)
        self.canvas_height = float(canvas_height)
        self.needs_dataset = needs_dataset
        self.hidden = False
        self.mode = TrackMode.CONTINUOUS
        self.tracks = {TrackMode.CONTINUOUS: BarTrack(), TrackMode.BOUNDED: BarTrack()}
        self.data = np.zeros(0)
        self._emit = emit
        self._set_geometry(mean, sd, num_bins, family, axis_sd)
        self.regenerate(True, family)

    @property
    def style_class(self) -> str:
        return f"histogram{self.id}"

    def track_class(self, mode: TrackMode) -> str:
        if mode == TrackMode.CONTINUOUS:
            return self.style_class
        return f"{self.style_class}-{mode.value}"

    @property
    def heights(self) -> np.ndarray:
        return self.tracks[self.mode].heights

    @property
    def bars(self) -> list[str]:
        return self.tracks[self.mode].bars

    def _set_geometry(self, mean, sd, num_bins, family, axis_sd):
        self.mean = float(mean)
        self.sd = float(sd)
        self.axis_sd = float(sd if axis_sd is None else axis_sd)
        self.num_bins = int(num_bins)
        self.family = family
        self.bin_width = compute_bin_width(self.num_bins, self.axis_sd)
        self.min_bin = compute_min_bin(self.num_bins, self.mean, self.bin_width)

    def _draw_track(self, mode: TrackMode, xs, width: float, heights: np.ndarray, first_draw: bool):
        track = self.tracks[mode]
        if len(track.bars) != len(heights):
            if track.bars:
                self._emit(ClearClass(self.canvas, self.track_class(mode)))
            first_draw = True
            track.bars = []
        for i, h in enumerate(heights):
            y = self.canvas_height - h
            if first_draw:
                key = f"{self.id}:{mode.value}:{i}"
                track.bars.append(key)
                if self.hidden:
                    y, h = self.canvas_height, 0.0
                self._emit(DrawBar(self.canvas, key, self.track_class(mode), float(xs[i]), float(y),
                                   width, float(h), self.fill))
            elif not self.hidden:
                self._emit(UpdateBar(self.canvas, track.bars[i], float(y), float(h)))
        track.heights = heights

    def _switch_mode(self, mode: TrackMode):
        if mode == self.mode:
            return
        self._zero_track(self.tracks[self.mode])
        self.mode = mode

    def _zero_track(self, track: BarTrack):
        for key in track.bars:
            self._emit(UpdateBar(self.canvas, key, self.canvas_height, 0.0))
        track.heights = np.zeros(len(track.bars))

    def bin_values(self) -> np.ndarray:
        """Representative value of each continuous bin."""
        return self.min_bin + (np.arange(self.num_bins) + 1) * self.bin_width

    def regenerate(self, first_draw: bool, family: Optional[DistributionFamily] = None):
        """
        Recomputes the continuous bar heights and the synthetic dataset.

        On the first draw new bars are emitted; afterwards the existing bars are
        moved, unless the histogram is hidden.
        """
        if family is not None:
            self.family = family
        self._switch_mode(TrackMode.CONTINUOUS)
        values = self.bin_values()
        heights = finite_heights(evaluate(self.family, self.mean, self.sd, values),
                                 ceiling=self.canvas_height)
        bar_width = self.canvas_width / self.num_bins
        xs = np.arange(self.num_bins) * bar_width
        self._draw_track(TrackMode.CONTINUOUS, xs, bar_width, heights, first_draw)
        self._rebuild_data(values, heights)

    def bounded_transform(self, p: float):
        """
        Shows the population as proportions: bar k stands for k / BOUNDED_TRIALS
        successes and the x-axis covers the fixed proportion domain.
        """
        self.mean = float(p)
        self.family = DistributionFamily.BOUNDED
        self._switch_mode(TrackMode.BOUNDED)
        values = np.arange(BOUNDED_BINS) / BOUNDED_TRIALS
        heights = finite_heights(evaluate(DistributionFamily.BOUNDED, p, self.sd, values),
                                 ceiling=self.canvas_height)
        start, stop = BOUNDED_DOMAIN
        scale = self.canvas_width / (stop - start)
        bar_width = scale / BOUNDED_TRIALS
        xs = (values - start) * scale
        first_draw = not self.tracks[TrackMode.BOUNDED].bars
        self._draw_track(TrackMode.BOUNDED, xs, bar_width, heights, first_draw)
        self._rebuild_data(values, heights)

    def _rebuild_data(self, values: np.ndarray, heights: np.ndarray):
        if not self.needs_dataset:
            self.data = np.zeros(0)
            return
        self.data = np.repeat(values, np.rint(heights).astype(int))
        logger.debug(f"Histogram {self.id}: {self.data.size} synthetic data points")

    def update(self, mean: float, sd: float, num_bins: int, family: DistributionFamily,
               bounded: bool = False, axis_sd: Optional[float] = None):
        self.reset()
        self._set_geometry(mean, sd, num_bins, family, axis_sd)
        if bounded:
            self.bounded_transform(mean)
        else:
            self.regenerate(False, family)

    def reset(self):
        """Drops every bar to zero height and empties the dataset; bars are kept."""
        for track in self.tracks.values():
            self._zero_track(track)
        self.data = np.zeros(0)

    def hide(self):
        self.hidden = True
        for key in self.bars:
            self._emit(UpdateBar(self.canvas, key, self.canvas_height, 0.0))

    def show(self):
        self.hidden = False
        if self.mode == TrackMode.BOUNDED:
            self.bounded_transform(self.mean)
        else:
            self.regenerate(False)
