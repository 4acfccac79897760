# -*- coding: utf-8 -*-
"""
extractor.py — Fundus Vessel Mask Extraction
=============================================

Composes the pipeline stages into a single ``extract(image) -> mask`` call.

Pipeline Stages (6):
    1.  Lightness Extraction   (L of L*a*b*, optionally CLAHE-boosted)
    2.  Multi-Scale Top-Hat    (radii 2, 5, 11 + CLAHE on the response)
    3.  Median Filter          (3x3)
    4.  Mean Threshold
    5.  Small-Blob Removal     (contour area < 25 px²)
    6.  Median Filter          (3x3, smooths jagged blob edges)

A :class:`VesselExtractor` is built once and reused: its configuration and
structuring elements are immutable, and every call allocates its own
intermediate buffers, so ``extract`` is a pure function of its input.
"""

import logging
from typing import Callable, Optional

import numpy as np

from .config import DEFAULT_CONFIG, ExtractorConfig
from .morphology import MultiScaleTopHat
from .postprocessing import Binarizer, BlobFilter
from .preprocessing import (
    ContrastEnhancer,
    boosted_lightness,
    ensure_color_image,
    extract_lightness,
    median_denoise,
)

logger = logging.getLogger(__name__)

#: Called as ``observer(stage_name, image)`` after every stage; ``image`` is a
#: read-only view, copy it before editing.
StageObserver = Callable[[str, np.ndarray], None]

STAGES = (
    "lightness",
    "background_suppressed",
    "median",
    "threshold",
    "cleaned",
    "mask",
)


class VesselExtractor:
    """Binary vessel mask extraction from a colour fundus photograph.

    Parameters
    ----------
    config : ExtractorConfig, optional
        Pipeline constants.  Defaults to :data:`~vesselmask.config.DEFAULT_CONFIG`.
    observer : callable, optional
        Receives ``(stage_name, image)`` after each stage, e.g. to display or
        record intermediate results.
    """

    def __init__(self, config: Optional[ExtractorConfig] = None,
                 observer: Optional[StageObserver] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self.observer = observer

        cfg = self.config
        self.enhancer = ContrastEnhancer(cfg.clahe_clip_limit, cfg.clahe_grid_size)
        self.top_hat = MultiScaleTopHat(cfg.se_radii, self.enhancer, cfg.polarity)
        self.binarizer = Binarizer()
        self.blob_filter = BlobFilter(cfg.min_blob_area)

    def _notify(self, stage: str, image: np.ndarray) -> None:
        if self.observer is None:
            return
        view = image.view()
        view.flags.writeable = False
        self.observer(stage, view)

    def color_filter(self, img_bgr: np.ndarray) -> np.ndarray:
        """Stage 1 — lightness plane, or boosted three-channel lightness."""
        if self.config.boost_lightness:
            return boosted_lightness(img_bgr, self.enhancer)
        return extract_lightness(img_bgr)

    def extract(self, image: np.ndarray) -> np.ndarray:
        """Extract the vessel mask.

        Parameters
        ----------
        image : np.ndarray
            BGR colour image of shape ``(H, W, 3)``, dtype uint8.

        Returns
        -------
        np.ndarray
            Mask of shape ``(H, W)``, dtype uint8, values in ``{0, 255}``:
            **255** = vessel, **0** = background.

        Raises
        ------
        InvalidInputError
            If ``image`` is empty or is not an 8-bit three-channel image.
        """
        cfg = self.config
        image = ensure_color_image(image, "extract")
        logger.debug("extract: %dx%d image", image.shape[1], image.shape[0])

        # 1. Lightness
        lightness = self.color_filter(image)
        self._notify("lightness", lightness)

        # 2. Background suppression  (vessels become bright)
        response = self.top_hat.suppress_background(lightness, cfg.channel_index)
        self._notify("background_suppressed", response)

        # 3. Speckle removal
        smoothed = median_denoise(response, cfg.median_ksize)
        self._notify("median", smoothed)

        # 4. Mean threshold
        binary = self.binarizer.binarize(smoothed)
        self._notify("threshold", binary)

        # 5. Small-blob removal
        cleaned = self.blob_filter.remove_small_blobs(binary)
        self._notify("cleaned", cleaned)

        # 6. Edge smoothing
        mask = median_denoise(cleaned, cfg.median_ksize)
        self._notify("mask", mask)
        return mask

    __call__ = extract

    def __repr__(self):
        return f"{type(self).__name__}(config={self.config!r})"


def segment_image(image: np.ndarray,
                  config: Optional[ExtractorConfig] = None) -> np.ndarray:
    """One-shot convenience wrapper around :meth:`VesselExtractor.extract`.

    Builds a fresh extractor per call; reuse a :class:`VesselExtractor` when
    processing many images.
    """
    return VesselExtractor(config).extract(image)
