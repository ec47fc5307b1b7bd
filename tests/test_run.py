from __future__ import annotations

import json
from pathlib import Path

import numpy as np
from PIL import Image


class _FakeLocalSegmenter:
    def __init__(self, model_spec: str = "", device=None):
        self.model_spec = model_spec

    def segment(self, image: Image.Image) -> Image.Image:
        arr = np.zeros((image.height, image.width, 4), dtype=np.uint8)
        arr[...] = (250, 250, 250, 255)
        arr[3:-3, 3:-3] = (200, 20, 20, 255)
        return Image.fromarray(arr)


def test_cli_processes_directory_and_writes_manifest(monkeypatch, tmp_path: Path):
    import run as run_mod

    monkeypatch.delenv("REMOVEBG_API_KEY", raising=False)
    monkeypatch.setattr(run_mod, "LocalSegmenter", _FakeLocalSegmenter)

    in_dir = tmp_path / "in"
    (in_dir / "sub").mkdir(parents=True)
    Image.new("RGB", (16, 12), (10, 10, 10)).save(str(in_dir / "a.jpg"), format="JPEG")
    Image.new("RGB", (16, 12), (10, 10, 10)).save(str(in_dir / "sub" / "b.png"), format="PNG")
    (in_dir / "notes.txt").write_text("ignored", encoding="utf-8")
    out_dir = tmp_path / "out"
    manifest = tmp_path / "manifest.jsonl"

    code = run_mod.main(
        ["--input", str(in_dir), "--output", str(out_dir), "--provider", "local", "--manifest", str(manifest)]
    )

    assert code == 0
    assert (out_dir / "a.png").exists()
    assert (out_dir / "sub" / "b.png").exists()

    records = [json.loads(line) for line in manifest.read_text(encoding="utf-8").splitlines()]
    assert len(records) == 2
    assert all(r["ok"] for r in records)
    assert {r["provider"] for r in records} == {"local"}
    # 10x6 subject, outer ring untouched because the backdrop was fully opaque
    assert {r["opaque_pixels"] for r in records} == {60}


def test_cli_reports_failures(monkeypatch, tmp_path: Path):
    import run as run_mod

    class _Broken(_FakeLocalSegmenter):
        def segment(self, image):
            raise RuntimeError("model exploded")

    monkeypatch.delenv("REMOVEBG_API_KEY", raising=False)
    monkeypatch.setattr(run_mod, "LocalSegmenter", _Broken)

    src = tmp_path / "one.png"
    Image.new("RGB", (4, 4)).save(str(src), format="PNG")
    manifest = tmp_path / "m.jsonl"

    code = run_mod.main(["--input", str(src), "--output", str(tmp_path / "out"), "--manifest", str(manifest)])

    assert code == 1
    record = json.loads(manifest.read_text(encoding="utf-8").strip())
    assert record["ok"] is False
    assert "model exploded" in record["error"]
