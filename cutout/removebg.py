from __future__ import annotations

import io
import logging
from typing import Optional

import requests
from PIL import Image

from .config import REMOVEBG_ENDPOINT, get_removebg_base_url, get_removebg_timeout_s

logger = logging.getLogger(__name__)


class RemoteProviderError(RuntimeError):
    """The remote background-removal service could not produce a cutout."""


def remove_background(
    image_bytes: bytes,
    filename: str,
    api_key: Optional[str],
    timeout_s: Optional[float] = None,
) -> Image.Image:
    """
    Send an encoded image to remove.bg and return its RGBA result.

    `timeout_s` is the caller's deadline for the whole request.
    """
    if not api_key or not api_key.strip():
        raise RemoteProviderError("Missing remove.bg API key")
    if timeout_s is None:
        timeout_s = get_removebg_timeout_s()

    url = f"{get_removebg_base_url()}{REMOVEBG_ENDPOINT}"
    logger.info("Requesting remote cutout for %s (%d bytes)", filename, len(image_bytes))
    try:
        resp = requests.post(
            url,
            headers={"X-Api-Key": api_key.strip()},
            files={"image_file": (filename, image_bytes)},
            data={"size": "auto", "format": "png"},
            timeout=timeout_s,
        )
    except requests.RequestException as e:
        raise RemoteProviderError(f"remove.bg request failed: {e}") from e

    if not resp.ok:
        raise RemoteProviderError(f"remove.bg API error: {resp.status_code} {resp.reason}")

    try:
        img = Image.open(io.BytesIO(resp.content))
        img.load()
    except Exception as e:
        raise RemoteProviderError("remove.bg returned an undecodable image") from e
    return img.convert("RGBA")
