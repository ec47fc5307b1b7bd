from __future__ import annotations

import argparse
import logging
import os
import time
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

from cutout.config import DEFAULT_MODEL_SPEC, REMOVEBG_API_KEY_ENV
from cutout.contracts import Provider, SegmentOptions
from cutout.io import append_jsonl, cutout_path, iter_images
from cutout.pipeline import process_image
from cutout.segment import LocalSegmenter, resolve_provider


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Background removal with binary-alpha cutout refinement.")
    parser.add_argument("--input", required=True, type=str, help="Input image or directory of images.")
    parser.add_argument("--output", required=True, type=str, help="Output directory for RGBA PNGs.")
    parser.add_argument(
        "--provider",
        default=Provider.auto.value,
        choices=[p.value for p in Provider],
        help="auto: remove.bg when an API key is set, otherwise the local model.",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        type=str,
        help=f"remove.bg API key (default: ${REMOVEBG_API_KEY_ENV}).",
    )
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL_SPEC,
        type=str,
        help="Local model spec: 'hf:<repo>' or a TorchScript file path.",
    )
    parser.add_argument("--timeout", default=None, type=float, help="Remote request deadline in seconds.")
    parser.add_argument("--no-fallback", action="store_true", help="Do not fall back to the local model.")
    parser.add_argument("--fail-empty", action="store_true", help="Treat an empty cutout as a failure.")
    parser.add_argument("--manifest", default=None, type=str, help="Append one JSON record per image here.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input)
    output_dir = Path(args.output)
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")

    api_key = args.api_key if args.api_key is not None else os.getenv(REMOVEBG_API_KEY_ENV)
    options = SegmentOptions(
        provider=Provider(args.provider),
        api_key=api_key,
        model=args.model,
        timeout_s=args.timeout,
        fallback_to_local=not args.no_fallback,
    )
    provider = resolve_provider(options.provider, options.api_key)

    images = list(iter_images(input_path))
    if not images:
        print(f"No images found under {input_path}")
        return 0

    input_root = input_path if input_path.is_dir() else input_path.parent
    local = LocalSegmenter(options.model)
    manifest = Path(args.manifest) if args.manifest else None

    failed = 0
    t0 = time.perf_counter()
    for img_path in tqdm(images, desc="Cutting out", unit="img"):
        out_path = cutout_path(img_path, input_root, output_dir)
        try:
            result = process_image(str(img_path), str(out_path), options, local, fail_fast=args.fail_empty)
        except RuntimeError as e:
            failed += 1
            tqdm.write(f"{img_path.name}: FAILED ({e})")
            if manifest is not None:
                append_jsonl(manifest, {"source_path": str(img_path), "ok": False, "error": str(e)})
            continue

        t = result.timings
        tqdm.write(
            f"{img_path.name}: {result.provider.value}{' (fallback)' if result.fell_back else ''} "
            f"opaque={result.opaque_pixels} total={t['total_s']:.3f}s "
            f"(seg={t['segment_s']:.3f}s refine={t['refine_s']:.3f}s save={t['save_s']:.3f}s)"
        )
        if manifest is not None:
            append_jsonl(manifest, {**result.model_dump(mode="json"), "ok": True})

    t1 = time.perf_counter()
    print(
        "Done.\n"
        f"- provider: {provider.value}\n"
        f"- images:   {len(images)}\n"
        f"- failed:   {failed}\n"
        f"- elapsed_s: {t1 - t0:.2f}\n"
        f"- output: {output_dir.resolve()}"
    )
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
