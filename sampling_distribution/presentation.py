"""
Geometry events and the matplotlib renderer for them.

The core never draws: histograms and the session describe every change as an
event and hand it to an adapter. Coordinates are pixels with the origin at the
top-left corner of a canvas, so a bar of height h standing on the baseline has
y = canvas_height - h.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

from matplotlib.figure import Figure
from matplotlib.patches import Rectangle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawBar:
    canvas: str
    key: str
    style_class: str
    x: float
    y: float
    width: float
    height: float
    fill: str
    opacity: float = 1.0
    # Where the bar starts before moving to y, when it should drop into place.
    start_y: Optional[float] = None


@dataclass(frozen=True)
class UpdateBar:
    canvas: str
    key: str
    y: float
    height: float


@dataclass(frozen=True)
class ClearClass:
    canvas: str
    style_class: str


@dataclass(frozen=True)
class DrawText:
    canvas: str
    text: str
    x: float
    y: float
    color: str = "black"


@dataclass(frozen=True)
class AxisTicks:
    canvas: str
    ticks: tuple[tuple[float, str], ...]


Event = Union[DrawBar, UpdateBar, ClearClass, DrawText, AxisTicks]


class PresentationAdapter(Protocol):

    def create_canvas(self, canvas_id: str, width: float, height: float) -> str:
        ...

    def apply(self, event: Event) -> None:
        ...


@dataclass
class _Canvas:
    fig: object
    ax: object
    width: float
    height: float
    bars: dict = field(default_factory=dict)
    text: object = None


class MatplotlibAdapter:
    """
    Renders each canvas as a matplotlib figure.

    Transitions are applied immediately: the last geometry sent for a bar wins.
    """

    def __init__(self, dpi: int = 100):
        self.dpi = dpi
        self._canvases: dict[str, _Canvas] = {}

    def create_canvas(self, canvas_id: str, width: float, height: float) -> str:
        # Not registered with pyplot; dropping the canvas frees the figure.
        fig = Figure(figsize=(width / self.dpi, height / self.dpi), dpi=self.dpi)
        ax = fig.add_subplot()
        fig.subplots_adjust(left=0.0, right=1.0, top=1.0, bottom=0.12)
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_yticks([])
        for side in ("left", "right", "top"):
            ax.spines[side].set_visible(False)
        ax.set_facecolor("white")
        self._canvases[canvas_id] = _Canvas(fig=fig, ax=ax, width=width, height=height)
        logger.debug(f"Created canvas {canvas_id} ({width}x{height})")
        return canvas_id

    def figure(self, canvas_id: str):
        return self._canvases[canvas_id].fig

    def bar_count(self, canvas_id: str, style_class: Optional[str] = None) -> int:
        bars = self._canvases[canvas_id].bars.values()
        if style_class is None:
            return len(bars)
        return sum(1 for b in bars if b.get_gid() == style_class)

    def apply(self, event: Event) -> None:
        canvas = self._canvases[event.canvas]

        if isinstance(event, DrawBar):
            old = canvas.bars.pop(event.key, None)
            if old is not None:
                old.remove()
            rect = Rectangle(
                (event.x, event.y),
                event.width,
                event.height,
                facecolor=event.fill,
                edgecolor=event.fill,
                linewidth=0,
                alpha=event.opacity,
                gid=event.style_class,
            )
            canvas.ax.add_patch(rect)
            canvas.bars[event.key] = rect

        elif isinstance(event, UpdateBar):
            rect = canvas.bars.get(event.key)
            if rect is None:
                logger.warning(f"Update for unknown bar {event.key} on {event.canvas}")
                return
            rect.set_y(event.y)
            rect.set_height(event.height)

        elif isinstance(event, ClearClass):
            for key in [k for k, b in canvas.bars.items() if b.get_gid() == event.style_class]:
                canvas.bars.pop(key).remove()

        elif isinstance(event, DrawText):
            if canvas.text is not None:
                canvas.text.remove()
                canvas.text = None
            if event.text:
                canvas.text = canvas.ax.text(event.x, event.y, event.text, color=event.color,
                                             fontsize=9, va="baseline", ha="left")

        elif isinstance(event, AxisTicks):
            canvas.ax.set_xticks([x for x, _ in event.ticks])
            canvas.ax.set_xticklabels([label for _, label in event.ticks], fontsize=8)

        else:
            raise TypeError(f"Unsupported event: {event!r}")

    def close(self) -> None:
        self._canvases.clear()
