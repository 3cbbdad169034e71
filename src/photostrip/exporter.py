"""Export orchestration — one composition at a time per exporter.

StripExporter is what the capture UI talks to. It owns:

  - the busy state: a second export while one is running fails fast
    with ExportInProgress (the UI disables its trigger meanwhile);
  - overlay preloading: overlays load in the background as soon as a
    design is selected, and animated export refuses to start (with
    OverlayNotReady) until the overlay is in memory;
  - the decode stage: slot payloads decode concurrently on a bounded
    thread pool, each waited on for at most `decode_timeout` seconds;
  - the draw stage: strictly sequential, slot order, one canvas.

Filters are parsed once when an export starts, so later edits by the
caller do not affect a running export.
"""

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from functools import partial

from PIL import Image

from .animated import (
    check_animatable,
    clip_payload,
    composite_clips,
    decode_clip,
)
from .common import load_image
from .errors import (
    CompositionCancelled,
    DecodeTimeout,
    ExportInProgress,
    ImageLoadFailure,
    NoAnimatableInput,
)
from .filters import snapshot_filters
from .layouts import resolve_layout
from .models import CompositionResult
from .registry import Registry, load_registry
from .settings import ExportSettings
from .still import render_still, still_payload, still_result


VALID_KINDS = {"still", "animated"}


class CancelToken:
    """Cooperative cancellation flag shared between caller and export."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CompositionCancelled("Export cancelled")


class OverlayLoader:
    """Loads one overlay image in the background.

    A design without an overlay resolves immediately to a transparent
    pixel, so it still counts as loaded.
    """

    def __init__(self, source, loader: Callable = load_image):
        self.source = source
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="photostrip-overlay")
        if source is None:
            self._future = pool.submit(Image.new, "RGBA", (1, 1), (0, 0, 0, 0))
        else:
            self._future = pool.submit(loader, source)
        pool.shutdown(wait=False)

    @property
    def ready(self) -> bool:
        """True once loading has finished (successfully or not)."""
        return self._future.done()

    @property
    def failed(self) -> bool:
        """True once loading has finished with an error."""
        return self._future.done() and self._future.exception() is not None

    def poll(self) -> Image.Image | None:
        """The loaded overlay, or None while still loading.

        Raises:
            ImageLoadFailure: Loading finished with an error.
        """
        if not self._future.done():
            return None
        return self._future.result()

    def wait(self, timeout: float | None = None) -> Image.Image:
        """Block until the overlay is loaded (for CLI and tests).

        Raises:
            DecodeTimeout: Not loaded within `timeout` seconds.
            ImageLoadFailure: Loading failed.
        """
        try:
            return self._future.result(timeout=timeout)
        except FuturesTimeout as e:
            raise DecodeTimeout(
                f"Overlay {self.source} did not load within {timeout}s"
            ) from e


class StripExporter:
    """Runs still and animated exports against a design registry."""

    def __init__(
        self,
        registry: Registry | None = None,
        settings: ExportSettings | None = None,
        overlay_loader: Callable | None = None,
    ):
        self.registry = registry if registry is not None else load_registry()
        self.settings = settings or self.registry.settings
        self._load_overlay = overlay_loader or load_image
        self._lock = threading.Lock()
        self._overlays: dict[str, OverlayLoader] = {}

    @property
    def busy(self) -> bool:
        """True while an export is running."""
        return self._lock.locked()

    def preload_overlay(self, design_key: str | None) -> OverlayLoader | None:
        """Start (or reuse) the background load of a design's overlay.

        A loader whose load failed is replaced, so calling this again
        retries the load.
        """
        design = self.registry.design(design_key)
        if design is None:
            return None
        loader = self._overlays.get(design.key)
        if loader is None or loader.failed:
            loader = OverlayLoader(design.overlay, self._load_overlay)
            self._overlays[design.key] = loader
        return loader

    def export(
        self,
        captured: Sequence,
        design_key: str | None = None,
        filters: Sequence | None = None,
        kind: str = "still",
        cancel: CancelToken | None = None,
        logger=None,
        fmt: str | None = None,
    ) -> CompositionResult:
        """Compose the captured images into a strip.

        Args:
            captured: CapturedImage records in slot order.
            design_key: Selected design, or None for the fallback grid.
            filters: One filter descriptor per slot (still export only).
            kind: "still" (PNG) or "animated" (GIF/MP4).
            cancel: Optional CancelToken.
            logger: proglog logger for animated progress ("bar", None, ...).
            fmt: Animated format override ("gif" or "mp4").

        Returns:
            A freshly encoded CompositionResult.

        Raises:
            ExportInProgress: Another export is running.
            CompositionError subclasses for every other failure.
        """
        if kind not in VALID_KINDS:
            raise ValueError(f"Unknown export kind '{kind}'. Valid: {sorted(VALID_KINDS)}")
        if not self._lock.acquire(blocking=False):
            raise ExportInProgress("An export is already running; wait for it to finish")
        try:
            captured = list(captured)
            if not captured:
                raise ValueError("Nothing to compose: no captured images")
            if len(captured) > self.settings.max_slots:
                raise ValueError(
                    f"Too many captured images: {len(captured)} (max {self.settings.max_slots})"
                )
            if kind == "still":
                return self._export_still(captured, design_key, filters, cancel)
            return self._export_animated(captured, design_key, cancel, logger, fmt)
        finally:
            self._lock.release()

    # ── Still ─────────────────────────────────────────────────────

    def _export_still(self, captured, design_key, filters, cancel) -> CompositionResult:
        photo_filters = snapshot_filters(filters, len(captured))
        layout = resolve_layout(
            self.registry.lookup(design_key), len(captured), self.settings,
        )

        images = self._decode_all(
            [still_payload(c) for c in captured], load_image, cancel,
        )
        if cancel is not None:
            cancel.raise_if_cancelled()

        design = self.registry.design(design_key)
        overlay = design.overlay if design is not None else None
        loader = self._overlays.get(design.key) if design is not None else None
        if loader is not None and loader.ready and not loader.failed:
            overlay = loader.poll()

        image = render_still(images, layout, photo_filters, overlay)
        return still_result(image)

    # ── Animated ──────────────────────────────────────────────────

    def _export_animated(self, captured, design_key, cancel, logger, fmt) -> CompositionResult:
        mapping = self.registry.lookup(design_key)
        if mapping is None:
            raise NoAnimatableInput(
                f"No frame mapping for design {design_key!r}; animated export has no fallback"
            )
        loader = self._overlays.get(mapping.key)
        if loader is not None and loader.failed:
            # Report the failure once; the next export starts a fresh load.
            del self._overlays[mapping.key]
            loader.poll()
        overlay = self.preload_overlay(design_key).poll()
        check_animatable(captured, mapping, overlay)

        decode = partial(decode_clip, max_frames=self.settings.max_frames)
        decoded = self._decode_all([clip_payload(c) for c in captured], decode, cancel)
        return composite_clips(
            decoded, mapping, overlay, self.settings, cancel, logger, fmt,
        )

    # ── Decode stage ──────────────────────────────────────────────

    def _decode_all(self, payloads: list, decode: Callable, cancel) -> list:
        """Decode payloads concurrently; return results in slot order.

        Each result is waited on for at most `decode_timeout` seconds.
        Pending work is abandoned on the first failure.
        """
        workers = max(1, min(self.settings.decode_workers, len(payloads)))
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="photostrip-decode")
        try:
            futures = [pool.submit(decode, p) for p in payloads]
            results = []
            for i, future in enumerate(futures):
                if cancel is not None:
                    cancel.raise_if_cancelled()
                try:
                    results.append(future.result(timeout=self.settings.decode_timeout))
                except FuturesTimeout as e:
                    raise DecodeTimeout(
                        f"Slot {i}: decode did not finish within "
                        f"{self.settings.decode_timeout}s"
                    ) from e
                except ImageLoadFailure as e:
                    raise type(e)(f"Slot {i}: {e}") from e
            return results
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
