from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
import logging
import threading
from typing import Callable, Optional

from svgconvert_core.render.compositor import apply_alpha_policy
from svgconvert_core.render.png import encode_png
from svgconvert_core.render.rasterizer import Rasterizer

from .config import RenderConfiguration, RenderTarget
from .coordinates import compute_transform
from .document import parse_svg
from .errors import AlphaChannelRemovalFailed, InvalidState, RenderWarning, RenderingAlreadyInProgress, SVGRenderingError
from .viewbox import resolve_viewbox


LOGGER = logging.getLogger(__name__)

WarningSink = Callable[[RenderWarning], None]


class SessionState(Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderResult:
    png: bytes | None = None
    error: SVGRenderingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


Completion = Callable[[RenderResult], None]


class SVGRenderer:
    """Converts SVG data to PNG, one render at a time.

    A request that arrives while another render is in flight fails immediately with
    RenderingAlreadyInProgress; the in-flight render is not affected. Separate
    renderer instances share nothing and may run concurrently.
    """

    def __init__(self, configuration: RenderConfiguration | None = None, rasterizer: Rasterizer | None = None) -> None:
        self.configuration = configuration or RenderConfiguration()
        self._rasterizer = rasterizer or Rasterizer()
        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._last_outcome: Optional[SessionState] = None

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def last_outcome(self) -> Optional[SessionState]:
        """COMPLETED or FAILED for the most recent finished render, None before the first."""
        with self._lock:
            return self._last_outcome

    def render(self, svg_data: bytes | str, target: RenderTarget, warning_sink: WarningSink | None = None) -> bytes:
        self._begin()
        return self._run(svg_data, target, warning_sink)

    def submit(
        self,
        svg_data: bytes | str,
        target: RenderTarget,
        completion: Completion | None = None,
        warning_sink: WarningSink | None = None,
    ) -> "Future[bytes]":
        """Render on a worker thread.

        The in-progress check happens before this returns, so a rejected request raises
        here instead of through the future.
        """
        self._begin()
        future: Future[bytes] = Future()
        future.set_running_or_notify_cancel()

        def work() -> None:
            try:
                png = self._run(svg_data, target, warning_sink)
            except SVGRenderingError as exc:
                future.set_exception(exc)
                result = RenderResult(error=exc)
            else:
                future.set_result(png)
                result = RenderResult(png=png)
            if completion is not None:
                completion(result)

        threading.Thread(target=work, name="svgconvert-render", daemon=True).start()
        return future

    def _begin(self) -> None:
        with self._lock:
            if self._state is SessionState.RENDERING:
                raise RenderingAlreadyInProgress()
            self._state = SessionState.RENDERING

    def _finish(self, outcome: SessionState) -> None:
        with self._lock:
            self._last_outcome = outcome
            self._state = SessionState.IDLE

    def _run(self, svg_data: bytes | str, target: RenderTarget, warning_sink: WarningSink | None) -> bytes:
        try:
            png = self._pipeline(svg_data, target, warning_sink)
        except SVGRenderingError:
            self._finish(SessionState.FAILED)
            raise
        except Exception as exc:
            LOGGER.exception("render failed unexpectedly")
            self._finish(SessionState.FAILED)
            raise InvalidState(str(exc)) from exc
        self._finish(SessionState.COMPLETED)
        return png

    def _pipeline(self, svg_data: bytes | str, target: RenderTarget, warning_sink: WarningSink | None) -> bytes:
        config = self.configuration
        width, height = target.pixel_size
        document = parse_svg(svg_data)
        warning = resolve_viewbox(document, (width, height), config.allow_fixing_missing_viewbox)
        if warning is not None and warning_sink is not None:
            try:
                warning_sink(warning)
            except Exception:
                LOGGER.exception("warning sink failed for %s", warning.name)

        # The fixed-up root attributes only take effect through a fresh parse.
        document = parse_svg(document.to_xml())
        transform = compute_transform(document.viewbox, width, height)
        LOGGER.debug("rendering %dx%d with %s", width, height, transform)
        canvas = self._rasterizer.paint(document, transform, width, height)
        pixels = canvas.to_rgba8()

        remove_alpha = target.removes_alpha(config)
        try:
            pixels = apply_alpha_policy(pixels, remove_alpha, config.background)
        except ValueError as exc:
            raise AlphaChannelRemovalFailed(str(exc)) from exc
        return encode_png(pixels, include_alpha=not remove_alpha, compress_level=config.compress_level)
