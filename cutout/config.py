"""
Centralized configuration constants for the cutout pipeline.

Ground rules:
- Refinement output alpha is binary (0 or 255)
- Refinement never changes image dimensions
- Local model: float32, batch size 1
"""

import os

# --- Refinement (binarize -> defringe -> flood) ---

# Alpha below this becomes fully transparent, at or above it fully opaque.
ALPHA_THRESHOLD = 200
# Interior opaque pixels with at least this many transparent 8-neighbours are eroded.
ERODE_MIN_TRANSPARENT_NEIGHBORS = 2

# Near-white / gray halo: low saturation and bright.
HALO_MAX_SATURATION = 0.15
HALO_MIN_VALUE = 200
# Green / blue spill: dominant channel must beat the others by this ratio...
SPILL_RATIO = 1.3
# ...and by this margin (fraction of 255) over the strongest other channel.
SPILL_MIN_EXCESS = 0.2

# Flood fill from the frame edge: opaque pixels count as background when both hold.
FLOOD_MAX_SATURATION = 0.2
FLOOD_MIN_BRIGHTNESS = 0.7
# Spacing of seed points along each edge (corners are always seeded).
FLOOD_SEED_STRIDE = 10

# --- Local segmentation model ---

# NOTE: BiRefNet internally splits into patches; this size must be divisible by
# its patching grid. 1088 is the closest "1080-class" square that works reliably.
TARGET_SIZE = 1088
PAD_COLOR = 127

IMAGENET_MEAN = [0.485, 0.456, 0.406]
IMAGENET_STD = [0.229, 0.224, 0.225]

DEFAULT_MODEL_SPEC = "hf:ZhengPeng7/BiRefNet"

# --- Remote segmentation provider (remove.bg) ---

REMOVEBG_BASE_URL = "https://api.remove.bg"
REMOVEBG_ENDPOINT = "/v1.0/removebg"
REMOVEBG_TIMEOUT_S = 60.0
REMOVEBG_API_KEY_ENV = "REMOVEBG_API_KEY"

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}


def get_removebg_base_url() -> str:
    return os.getenv("REMOVEBG_BASE_URL", REMOVEBG_BASE_URL).rstrip("/")


def get_removebg_timeout_s() -> float:
    try:
        return float(os.getenv("REMOVEBG_TIMEOUT_S", str(REMOVEBG_TIMEOUT_S)))
    except ValueError:
        return REMOVEBG_TIMEOUT_S
