# -*- coding: utf-8 -*-
"""
analysis.py — Mask Quality Metrics and Reporting
=================================================

Compares extracted vessel masks with ground-truth annotations and formats
the per-image results for the console.
"""

from typing import Dict, Sequence

import numpy as np

from .errors import InvalidInputError

EPS = 1e-8


def _as_binary(mask: np.ndarray) -> np.ndarray:
    """Map a {0, 1} or {0, 255} mask to a flat float {0.0, 1.0} vector."""
    mask = np.asarray(mask)
    threshold = 0 if mask.max(initial=0) <= 1 else 127
    return (mask > threshold).astype(np.float64).ravel()


def foreground_fraction(mask: np.ndarray) -> float:
    """Fraction of pixels classified as vessel."""
    return float(_as_binary(mask).mean()) if np.size(mask) else 0.0


def compute_metrics(pred: np.ndarray, gt: np.ndarray) -> Dict[str, float]:
    """Compute segmentation quality metrics for a single image.

    Parameters
    ----------
    pred, gt : np.ndarray
        Binary masks of the same shape, values in {0, 1} or {0, 255}.

    Returns
    -------
    dict with keys: precision, recall, f1, iou, specificity, accuracy
    """
    if np.shape(pred) != np.shape(gt):
        raise InvalidInputError(f"Shape mismatch: pred {np.shape(pred)} vs gt {np.shape(gt)}")

    pred = _as_binary(pred)
    gt = _as_binary(gt)

    tp = np.sum(gt * pred)
    fp = np.sum(pred) - tp
    fn = np.sum(gt) - tp
    tn = len(gt) - tp - fp - fn

    precision = tp / (tp + fp + EPS)
    recall = tp / (tp + fn + EPS)
    f1 = 2 * precision * recall / (precision + recall + EPS)
    iou = tp / (tp + fp + fn + EPS)
    specificity = tn / (tn + fp + EPS)
    accuracy = (tp + tn) / (tp + tn + fp + fn + EPS)

    return {
        "precision": round(float(precision), 6),
        "recall": round(float(recall), 6),
        "f1": round(float(f1), 6),
        "iou": round(float(iou), 6),
        "specificity": round(float(specificity), 6),
        "accuracy": round(float(accuracy), 6),
    }


REPORT_COLUMNS = ("precision", "recall", "f1", "iou", "accuracy", "foreground")


def average_metrics(results: Sequence[Dict]) -> Dict[str, float]:
    """Mean of every numeric column shared by all ``results`` rows."""
    if not results:
        return {}
    shared = set(results[0]).intersection(*results[1:]) - {"image"}
    return {key: float(np.mean([r[key] for r in results]))
            for key in sorted(shared)}


def format_report(results: Sequence[Dict],
                  columns: Sequence[str] = REPORT_COLUMNS) -> str:
    """Per-image score table followed by an AVERAGE row.

    The image column is as wide as the longest name; columns missing from
    a row print as ``-``.
    """
    width = max([len("AVERAGE")] + [len(r["image"]) for r in results])

    def row(label, values):
        cells = "".join(f"{values[c]:11.4f}" if c in values else f"{'-':>11}"
                        for c in columns)
        return f"  {label:<{width}}{cells}"

    rule = "  " + "-" * (width + 11 * len(columns))
    lines = [f"  {'Image':<{width}}" + "".join(f"{c:>11}" for c in columns), rule]
    lines.extend(row(r["image"], r) for r in results)
    if results:
        lines += [rule, row("AVERAGE", average_metrics(results))]
    return "\n".join(lines)
