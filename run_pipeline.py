#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
run_pipeline.py — Command-Line Vessel Mask Extraction
======================================================

Reads fundus photographs, extracts their vessel masks, and writes a two-up
composite (input | mask) for every image.

Usage
-----
    # Explicit input/output pairs:
    python run_pipeline.py drive/01_test.png out/01.png drive/02_test.png out/02.png

    # Whole directory:
    python run_pipeline.py --input-dir dataset/test --output-dir dataset/output

    # Show every intermediate stage (press 'q', SPACE or ESC to continue):
    python run_pipeline.py -s drive/01_test.png out/01.png

    # Save stage galleries and score against ground-truth masks:
    python run_pipeline.py --input-dir dataset/test --output-dir dataset/output \\
        --stages results/stages -g dataset/groundtruth

    # Also write the mask drawn in green over each input:
    python run_pipeline.py --overlay results/overlays drive/01_test.png out/01.png
"""

import argparse
import logging
import os
import sys
import time
from typing import Dict, List, Optional, Tuple

from vesselmask import VesselExtractor, VesselMaskError, get_preset
from vesselmask.analysis import compute_metrics, foreground_fraction, format_report
from vesselmask.config import PRESETS
from vesselmask.io_utils import read_color_image, read_mask, write_image
from vesselmask.visualization import (
    StageRecorder,
    overlay_vessels_on_fundus,
    save_stage_gallery,
    show_image,
    show_stage,
    side_by_side,
)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp"}


# ──────────────────────────────────────────────────────────────────────────────
# Argument Handling
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vessel-extract",
        description="Extract binary vessel masks from colour fundus images.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "images", nargs="*", metavar="IMG",
        help="Alternating <input_img> <output_img> paths")
    parser.add_argument(
        "-s", "--show", action="store_true",
        help="Show images. Press 'q', SPACE, or ESC to close window.")
    parser.add_argument(
        "--input-dir", metavar="DIR",
        help="Process every image in DIR (requires --output-dir)")
    parser.add_argument(
        "--output-dir", metavar="DIR",
        help="Where composites for --input-dir are written")
    parser.add_argument(
        "--stages", metavar="DIR",
        help="Save a figure of every intermediate stage per image to DIR")
    parser.add_argument(
        "--overlay", metavar="DIR",
        help="Also write the mask drawn over the input to DIR/<stem>_overlay.png")
    parser.add_argument(
        "-g", "--groundtruth", metavar="DIR",
        help="Score each mask against DIR/<input stem>.png")
    parser.add_argument(
        "--preset", choices=sorted(PRESETS), default="default",
        help="Configuration preset (default: default)")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log every pipeline stage")

    args = parser.parse_args(argv)

    if len(args.images) % 2 == 1:
        parser.error(f"Wrong number of arguments: expected <input_img> "
                     f"<output_img> pairs, got {len(args.images)} path(s)")
    if bool(args.input_dir) != bool(args.output_dir):
        parser.error("--input-dir and --output-dir must be given together")
    return args


def collect_jobs(args: argparse.Namespace) -> List[Tuple[str, str]]:
    """(input, output) path pairs from positional pairs and --input-dir."""
    jobs = list(zip(args.images[0::2], args.images[1::2]))
    if args.input_dir:
        if not os.path.isdir(args.input_dir):
            raise FileNotFoundError(f"{args.input_dir} input directory does not exist")
        for fname in sorted(os.listdir(args.input_dir)):
            path = os.path.join(args.input_dir, fname)
            if not (os.path.isfile(path)
                    and os.path.splitext(fname)[1].lower() in IMAGE_EXTENSIONS):
                continue
            stem = os.path.splitext(fname)[0]
            jobs.append((path,
                         os.path.join(args.output_dir, f"{stem}.png")))
    return jobs


# ──────────────────────────────────────────────────────────────────────────────
# Per-Image Processing
# ──────────────────────────────────────────────────────────────────────────────

def process_image(extractor: VesselExtractor,
                  input_path: str,
                  output_path: str,
                  show: bool = False,
                  recorder: Optional[StageRecorder] = None,
                  stages_dir: Optional[str] = None,
                  overlay_dir: Optional[str] = None,
                  gt_dir: Optional[str] = None) -> Optional[Dict]:
    """Extract one mask and write the two-up composite.

    Returns the ground-truth metrics for the image when ``gt_dir`` is given,
    otherwise ``None``.  Any failure is raised to the caller.
    """
    if not os.path.isfile(input_path):
        raise FileNotFoundError(f"{input_path} input does not exist")

    image = read_color_image(input_path)
    if recorder is not None:
        recorder.clear()

    mask = extractor.extract(image)
    if show:
        show_image(mask, output_path)

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    write_image(output_path, side_by_side(image, mask))

    stem = os.path.splitext(os.path.basename(input_path))[0]
    if recorder is not None and stages_dir:
        os.makedirs(stages_dir, exist_ok=True)
        save_stage_gallery(recorder.stages,
                           os.path.join(stages_dir, f"{stem}_stages.png"),
                           title=f"Vessel Extraction Stages — {stem}")

    if overlay_dir:
        os.makedirs(overlay_dir, exist_ok=True)
        write_image(os.path.join(overlay_dir, f"{stem}_overlay.png"),
                    overlay_vessels_on_fundus(image, mask))

    if gt_dir:
        gt = read_mask(os.path.join(gt_dir, f"{stem}.png"))
        metrics = compute_metrics(mask, gt)
        metrics["foreground"] = foreground_fraction(mask)
        metrics["image"] = os.path.basename(input_path)
        return metrics
    return None


def _broadcast(observers):
    """Combine several stage observers into one callback."""
    if not observers:
        return None

    def observer(stage, image):
        for obs in observers:
            obs(stage, image)
    return observer


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        jobs = collect_jobs(args)
    except FileNotFoundError as exc:
        print(f"  [ERROR] {exc}", file=sys.stderr)
        return 1

    if not jobs:
        print("  Nothing to do: pass <input_img> <output_img> pairs or --input-dir.")
        return 0

    print("\n" + "=" * 60)
    print(f"  VESSEL MASK EXTRACTION  |  {len(jobs)} image(s)  |  preset={args.preset}")
    print("=" * 60)

    recorder = StageRecorder() if args.stages else None
    observers = [show_stage] if args.show else []
    if recorder is not None:
        observers.append(recorder)

    extractor = VesselExtractor(get_preset(args.preset), _broadcast(observers))

    results = []
    t0 = time.perf_counter()
    for i, (input_path, output_path) in enumerate(jobs, 1):
        try:
            metrics = process_image(extractor, input_path, output_path,
                                    show=args.show, recorder=recorder,
                                    stages_dir=args.stages,
                                    overlay_dir=args.overlay,
                                    gt_dir=args.groundtruth)
        except (VesselMaskError, OSError) as exc:
            print(f"  [ERROR] {input_path}: {exc}", file=sys.stderr)
            return 1

        print(f"  [{i:3d}/{len(jobs)}] {input_path}  →  {output_path}")
        if metrics is not None:
            results.append(metrics)

    elapsed = time.perf_counter() - t0
    print(f"\n  Extraction complete in {elapsed:.1f}s "
          f"({elapsed / len(jobs):.2f}s per image)")

    if results:
        print()
        print(format_report(results))

    print(f"\n{'='*60}")
    print("  EXTRACTION COMPLETE")
    print(f"{'='*60}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
