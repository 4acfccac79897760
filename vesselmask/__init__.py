# vesselmask/ — Retinal Vessel Mask Extraction
"""
Binary vessel masks from colour fundus photographs.

Submodules:
    config          — Immutable pipeline configuration and presets
    preprocessing   — Input validation, lightness extraction, CLAHE, median filter
    morphology      — Structuring elements and the multi-scale top-hat
    postprocessing  — Mean thresholding and small-blob removal
    extractor       — The end-to-end VesselExtractor
    io_utils        — Reading, writing and in-memory encoding of images
    visualization   — Stage observers, composites and figures
    analysis        — Mask quality metrics against ground truth
"""

from .config import DEFAULT_CONFIG, PRESETS, ExtractorConfig, get_preset
from .errors import ConfigurationError, InvalidInputError, VesselMaskError
from .extractor import STAGES, VesselExtractor, segment_image
from .morphology import MultiScaleTopHat, StructuringElement
from .postprocessing import Binarizer, BlobFilter
from .preprocessing import ContrastEnhancer

__version__ = "1.0.0"

__all__ = [
    "Binarizer",
    "BlobFilter",
    "ConfigurationError",
    "ContrastEnhancer",
    "DEFAULT_CONFIG",
    "ExtractorConfig",
    "InvalidInputError",
    "MultiScaleTopHat",
    "PRESETS",
    "STAGES",
    "StructuringElement",
    "VesselExtractor",
    "VesselMaskError",
    "get_preset",
    "segment_image",
]
