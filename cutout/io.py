from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator

from PIL import Image

from .config import IMAGE_EXTENSIONS


def load_image(path: str) -> Image.Image:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Could not read image: {path}")
    img = Image.open(p)
    img.load()
    return img


def save_rgba_png(img: Image.Image, out_path: str) -> None:
    """
    Save as lossless RGBA PNG, creating parent directories.
    """
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    img.save(str(p), format="PNG", optimize=False)


def cutout_path(src: Path, input_root: Path, output_root: Path) -> Path:
    """
    Output path mirroring `src` under `output_root`, always with a .png suffix.
    Example: in/a/cat.jpg -> out/a/cat.png
    """
    if src == input_root:
        rel = Path(src.name)
    else:
        rel = src.relative_to(input_root)
    return (output_root / rel).with_suffix(".png")


def iter_images(input_path: Path) -> Iterator[Path]:
    if input_path.is_file():
        yield input_path
        return
    for p in sorted(input_path.rglob("*")):
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS:
            yield p


def append_jsonl(path: Path, record: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as fp:
        fp.write(json.dumps(record, ensure_ascii=False) + "\n")
