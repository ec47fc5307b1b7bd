from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Optional

from .buffer import PixelBuffer
from .contracts import CutoutResult, SegmentOptions
from .io import save_rgba_png
from .refine import opaque_count, refine
from .segment import LocalSegmenter, segment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageTimings:
    segment_s: float
    refine_s: float
    save_s: float
    total_s: float


def process_image(
    image_path: str,
    out_path: str,
    options: Optional[SegmentOptions] = None,
    local_segmenter: Optional[LocalSegmenter] = None,
    *,
    fail_fast: bool = False,
) -> CutoutResult:
    """
    Deterministic, linear pipeline:
      1) Initial segmentation (remote or local, chosen once per call)
      2) Refine: binarize + erode, defringe, flood-erase edge background
      3) Save lossless RGBA PNG

    The refinement runs identically whichever provider produced the cutout.
    """
    if options is None:
        options = SegmentOptions()
    try:
        t0 = time.perf_counter()

        outcome = segment(image_path, options, local_segmenter)
        t1 = time.perf_counter()
        logger.info(
            "Segmented %s via %s%s",
            image_path,
            outcome.provider.value,
            " (fallback)" if outcome.fell_back else "",
        )

        buffer = refine(PixelBuffer.from_image(outcome.image))
        opaque = opaque_count(buffer)
        t2 = time.perf_counter()

        if opaque == 0:
            msg = f"No foreground left after refinement for {image_path}"
            if fail_fast:
                raise RuntimeError(msg)
            logger.warning(msg)

        save_rgba_png(buffer.to_image(), out_path)
        t3 = time.perf_counter()
    except Exception as e:
        logger.error("Background removal failed for %s: %s", image_path, e)
        raise RuntimeError(f"Background removal failed: {e}") from e

    timings = StageTimings(segment_s=t1 - t0, refine_s=t2 - t1, save_s=t3 - t2, total_s=t3 - t0)
    return CutoutResult(
        source_path=str(image_path),
        output_path=str(out_path),
        provider=outcome.provider,
        fell_back=outcome.fell_back,
        width=buffer.width,
        height=buffer.height,
        opaque_pixels=opaque,
        timings=asdict(timings),
    )
