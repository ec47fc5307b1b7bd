from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import torch
from PIL import Image

from .config import DEFAULT_MODEL_SPEC, TARGET_SIZE
from .contracts import Provider, SegmentOptions
from .inference import predict_matte
from .io import load_image
from .model import load_model
from .preprocess import image_to_rgb, matte_to_rgba, normalize, resize_with_padding, restore_mask_to_original
from .removebg import RemoteProviderError, remove_background

logger = logging.getLogger(__name__)


class SegmentationError(RuntimeError):
    """No provider produced an initial segmentation."""


@dataclass
class SegmentationOutcome:
    image: Image.Image
    provider: Provider
    fell_back: bool = False


class LocalSegmenter:
    """
    Local matting model. Loaded on first use and kept for the instance's lifetime,
    so batch callers should create one and reuse it.
    """

    def __init__(self, model_spec: str = DEFAULT_MODEL_SPEC, device: Optional[torch.device] = None):
        self.model_spec = model_spec
        self.device = device
        self._model: Any = None

    def _ensure_loaded(self) -> None:
        if self._model is None:
            logger.info("Loading local segmentation model %s", self.model_spec)
            self._model, self.device = load_model(self.model_spec, device=self.device)

    def segment(self, image: Image.Image) -> Image.Image:
        self._ensure_loaded()
        rgb = image_to_rgb(image)
        padded, meta = resize_with_padding(rgb, TARGET_SIZE)
        matte = predict_matte(self._model, normalize(padded), self.device)
        return matte_to_rgba(rgb, restore_mask_to_original(matte, meta))


def resolve_provider(requested: Provider, api_key: Optional[str]) -> Provider:
    """
    Pick the segmentation strategy once, up front.

    auto -> remote if an API key is present, else local.
    """
    has_key = bool(api_key and api_key.strip())
    if requested == Provider.auto:
        return Provider.remote if has_key else Provider.local
    if requested == Provider.remote and not has_key:
        raise ValueError("Remote provider requires an API key")
    return requested


def segment(
    image_path: str,
    options: SegmentOptions,
    local_segmenter: Optional[LocalSegmenter] = None,
) -> SegmentationOutcome:
    """
    Initial RGBA segmentation of `image_path` using the resolved provider.

    A failed remote call falls back to the local model when
    `options.fallback_to_local` is set; otherwise the error propagates.
    """
    provider = resolve_provider(options.provider, options.api_key)
    fell_back = False

    if provider == Provider.remote:
        path = Path(image_path)
        if not path.is_file():
            raise FileNotFoundError(f"Could not read image: {image_path}")
        try:
            img = remove_background(path.read_bytes(), path.name, options.api_key, timeout_s=options.timeout_s)
            return SegmentationOutcome(image=img, provider=Provider.remote)
        except RemoteProviderError as e:
            if not options.fallback_to_local:
                raise
            logger.warning("Remote segmentation failed, falling back to local model: %s", e)
            fell_back = True

    source = load_image(image_path)
    if local_segmenter is None:
        local_segmenter = LocalSegmenter(options.model)
    try:
        img = local_segmenter.segment(source)
    except Exception as e:
        raise SegmentationError(f"Local segmentation failed: {e}") from e
    return SegmentationOutcome(image=img, provider=Provider.local, fell_back=fell_back)
