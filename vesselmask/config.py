# -*- coding: utf-8 -*-
"""
config.py — Extraction Hyperparameters
=======================================

All tuning constants of the vessel extractor live in one immutable object.
An :class:`ExtractorConfig` is validated once when it is built, so every
pipeline stage can rely on its invariants without re-checking them.
"""

from dataclasses import dataclass, replace
from typing import Dict, Tuple

from .errors import ConfigurationError

POLARITIES = ("bright", "dark")


@dataclass(frozen=True)
class ExtractorConfig:
    """Fixed parameters of the vessel extraction pipeline."""

    # ── Multi-scale top-hat ──────────────────────────────────────────────
    se_radii: Tuple[int, ...] = (2, 5, 11)   # kernel sides 5, 11, 23
    polarity: str = "bright"                 # 'bright': channel - background

    # ── CLAHE ────────────────────────────────────────────────────────────
    clahe_clip_limit: float = 3.0
    clahe_grid_size: Tuple[int, int] = (8, 8)

    # ── Lightness extraction ─────────────────────────────────────────────
    boost_lightness: bool = True             # CLAHE on L, replicated to 3 ch
    channel_index: int = 0

    # ── Noise suppression ────────────────────────────────────────────────
    median_ksize: int = 3
    min_blob_area: float = 25.0

    def __post_init__(self):
        # Accept lists from callers but store tuples so the object stays hashable.
        object.__setattr__(self, "se_radii", tuple(self.se_radii))
        object.__setattr__(self, "clahe_grid_size", tuple(self.clahe_grid_size))
        self._validate()

    def _validate(self) -> None:
        radii = self.se_radii
        if not radii:
            raise ConfigurationError("se_radii must contain at least one radius")
        if any(int(r) != r or r < 1 for r in radii):
            raise ConfigurationError(
                f"se_radii must be positive integers, got {radii}")
        if any(b <= a for a, b in zip(radii, radii[1:])):
            raise ConfigurationError(
                f"se_radii must be strictly increasing, got {radii}")

        if self.polarity not in POLARITIES:
            raise ConfigurationError(
                f"Unknown polarity '{self.polarity}'. Choose from {list(POLARITIES)}")

        if self.clahe_clip_limit <= 0:
            raise ConfigurationError(
                f"clahe_clip_limit must be positive, got {self.clahe_clip_limit}")
        if (len(self.clahe_grid_size) != 2
                or any(int(g) != g or g < 1 for g in self.clahe_grid_size)):
            raise ConfigurationError(
                f"clahe_grid_size must be two positive integers, "
                f"got {self.clahe_grid_size}")

        if self.channel_index not in (0, 1, 2):
            raise ConfigurationError(
                f"channel_index must be 0, 1 or 2, got {self.channel_index}")

        if self.median_ksize < 1 or self.median_ksize % 2 == 0:
            raise ConfigurationError(
                f"median_ksize must be odd and >= 1, got {self.median_ksize}")
        if self.min_blob_area < 0:
            raise ConfigurationError(
                f"min_blob_area must be non-negative, got {self.min_blob_area}")


DEFAULT_CONFIG = ExtractorConfig()

# Named presets.  'default' reproduces the reference pipeline exactly.
PRESETS: Dict[str, ExtractorConfig] = {
    "default": DEFAULT_CONFIG,
    "plain": replace(DEFAULT_CONFIG, boost_lightness=False),
    "dark": replace(DEFAULT_CONFIG, polarity="dark"),
}


def get_preset(name: str = "default") -> ExtractorConfig:
    """Return the named configuration preset.

    Parameters
    ----------
    name : str
        One of ``'default'``, ``'plain'`` or ``'dark'``.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset '{name}'. Choose from {sorted(PRESETS)}") from None
