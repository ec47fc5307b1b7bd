from __future__ import annotations

import enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .config import DEFAULT_MODEL_SPEC


class Provider(str, enum.Enum):
    """Where the initial (unrefined) segmentation comes from."""

    auto = "auto"
    remote = "remote"
    local = "local"


class SegmentOptions(BaseModel):
    """Per-invocation segmentation settings; nothing here is read from globals."""

    provider: Provider = Provider.auto
    api_key: Optional[str] = Field(default=None, repr=False)
    model: str = DEFAULT_MODEL_SPEC
    # Deadline for the remote request; None -> REMOVEBG_TIMEOUT_S / env override.
    timeout_s: Optional[float] = Field(default=None, gt=0)
    fallback_to_local: bool = True


class CutoutResult(BaseModel):
    source_path: str
    output_path: str
    provider: Provider
    fell_back: bool = False
    width: int
    height: int
    opaque_pixels: int
    timings: Dict[str, float] = Field(default_factory=dict)
