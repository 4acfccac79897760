# -*- coding: utf-8 -*-
"""
visualization.py — Inspecting Extraction Results
=================================================

Display and figure helpers that sit outside the extraction pipeline.  The
extractor never displays anything itself; instead a :class:`StageRecorder`
(or :func:`show_image` wrapped in a callback) is passed to it as an observer.
"""

from collections import OrderedDict
from typing import Dict

import cv2
import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .preprocessing import ensure_color_image, ensure_single_channel

_TITLE_COLOR = "#1E293B"

# Keys that close a window opened by show_image: ESC, 'q', SPACE.
_CLOSE_KEYS = (27, ord("q"), ord(" "))


# ──────────────────────────────────────────────────────────────────────────────
# Interactive Display
# ──────────────────────────────────────────────────────────────────────────────

def show_image(image: np.ndarray, title: str) -> None:
    """Show ``image`` in an OpenCV window until 'q', SPACE or ESC is pressed."""
    cv2.imshow(title, image)
    key = 0
    while key not in _CLOSE_KEYS:
        key = cv2.waitKey(10) & 0xFF
    cv2.destroyWindow(title)


def show_stage(stage: str, image: np.ndarray) -> None:
    """Observer that opens a window for every pipeline stage."""
    show_image(image, f"extract(): {stage}")


# ──────────────────────────────────────────────────────────────────────────────
# Stage Recording
# ──────────────────────────────────────────────────────────────────────────────

class StageRecorder:
    """Observer that keeps a private copy of every intermediate stage.

    Example
    -------
    >>> recorder = StageRecorder()
    >>> mask = VesselExtractor(observer=recorder).extract(img)
    >>> list(recorder.stages)
    ['lightness', 'background_suppressed', 'median', 'threshold', 'cleaned', 'mask']
    """

    def __init__(self):
        self.stages: "OrderedDict[str, np.ndarray]" = OrderedDict()

    def __call__(self, stage: str, image: np.ndarray) -> None:
        self.stages[stage] = np.array(image, copy=True)

    def clear(self) -> None:
        self.stages.clear()


def save_stage_gallery(stages: Dict[str, np.ndarray],
                       save_path: str,
                       title: str = "Vessel Extraction Stages") -> None:
    """Save every intermediate stage side by side in one figure.

    Parameters
    ----------
    stages : dict
        Ordered mapping of {stage_name: image_ndarray}.
    save_path : str
        Output file path.
    title : str
        Figure super-title.
    """
    n = len(stages)
    if n == 0:
        raise ValueError("No stages to plot")
    cols = min(3, n)
    rows = (n + cols - 1) // cols

    fig, axes = plt.subplots(rows, cols, figsize=(4 * cols, 3.5 * rows),
                             squeeze=False)
    fig.patch.set_facecolor("white")
    fig.suptitle(title, fontsize=14, fontweight="bold",
                 color=_TITLE_COLOR)

    axes_flat = axes.flatten()
    for ax, (name, img) in zip(axes_flat, stages.items()):
        if img.ndim == 3:
            ax.imshow(cv2.cvtColor(img, cv2.COLOR_BGR2RGB))
        else:
            ax.imshow(img, cmap="gray", vmin=0, vmax=255)
        ax.set_title(name, fontsize=10, fontweight="bold", color=_TITLE_COLOR)
        ax.set_xticks([])
        ax.set_yticks([])

    for ax in axes_flat[n:]:
        ax.axis("off")

    fig.tight_layout()
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


# ──────────────────────────────────────────────────────────────────────────────
# Composites
# ──────────────────────────────────────────────────────────────────────────────

def side_by_side(fundus_bgr: np.ndarray, vessel_mask: np.ndarray) -> np.ndarray:
    """Two-up composite: the input on the left, the mask (as BGR) on the right."""
    fundus_bgr = ensure_color_image(fundus_bgr, "side_by_side")
    vessel_mask = ensure_single_channel(vessel_mask, "side_by_side")
    if fundus_bgr.shape[:2] != vessel_mask.shape:
        raise ValueError(f"Size mismatch: image {fundus_bgr.shape[:2]} "
                         f"vs mask {vessel_mask.shape}")
    return cv2.hconcat([fundus_bgr, cv2.cvtColor(vessel_mask, cv2.COLOR_GRAY2BGR)])


def overlay_vessels_on_fundus(fundus_bgr: np.ndarray,
                              vessel_mask: np.ndarray,
                              color: tuple = (0, 255, 0),
                              alpha: float = 0.5) -> np.ndarray:
    """Overlay predicted vessels on the original fundus image.

    Parameters
    ----------
    fundus_bgr : np.ndarray
        Original fundus image (BGR, H×W×3).
    vessel_mask : np.ndarray
        Binary vessel mask (H×W), values {0, 1} or {0, 255}.
    color : tuple
        BGR colour for the vessel overlay.
    alpha : float
        Blending factor (0 = no overlay, 1 = full colour).

    Returns
    -------
    np.ndarray
        Blended image in BGR format.
    """
    vessel_pixels = vessel_mask > (0 if vessel_mask.max() <= 1 else 127)

    overlay = fundus_bgr.copy()
    overlay[vessel_pixels] = (
        (1 - alpha) * fundus_bgr[vessel_pixels]
        + alpha * np.array(color, dtype=np.float64)
    ).astype(np.uint8)
    return overlay
