import numpy as np
import pytest

from vesselmask import ContrastEnhancer, InvalidInputError
from vesselmask.preprocessing import (
    apply_clahe,
    boosted_lightness,
    ensure_color_image,
    ensure_single_channel,
    extract_lightness,
    median_denoise,
    select_channel,
)


# ── Validation ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("bad", [
    None,
    [[1, 2], [3, 4]],
    np.zeros((0, 5), dtype=np.uint8),
    np.zeros((4, 4), dtype=np.float32),
    np.zeros((4, 4, 3), dtype=np.uint8),
])
def test_ensure_single_channel_rejects(bad):
    with pytest.raises(InvalidInputError):
        ensure_single_channel(bad)


def test_ensure_single_channel_squeezes_trailing_axis():
    img = np.arange(16, dtype=np.uint8).reshape(4, 4, 1)
    assert ensure_single_channel(img).shape == (4, 4)


@pytest.mark.parametrize("shape", [(8, 8), (8, 8, 1), (8, 8, 4), (0, 8, 3)])
def test_ensure_color_image_rejects(shape):
    with pytest.raises(InvalidInputError):
        ensure_color_image(np.zeros(shape, dtype=np.uint8))


def test_select_channel():
    img = np.zeros((5, 6, 3), dtype=np.uint8)
    img[:, :, 2] = 7
    assert (select_channel(img, 2) == 7).all()
    assert select_channel(img, 0).shape == (5, 6)

    gray = np.ones((5, 6), dtype=np.uint8)
    assert select_channel(gray) is gray
    with pytest.raises(InvalidInputError):
        select_channel(gray, 1)
    with pytest.raises(InvalidInputError):
        select_channel(img, 3)


# ── Lightness ────────────────────────────────────────────────────────────────

def test_extract_lightness_of_gray_is_uniform():
    img = np.full((10, 12, 3), 128, dtype=np.uint8)
    lightness = extract_lightness(img)
    assert lightness.shape == (10, 12)
    assert lightness.dtype == np.uint8
    assert lightness.min() == lightness.max()


def test_extract_lightness_preserves_brightness_order():
    img = np.zeros((2, 2, 3), dtype=np.uint8)
    img[0, 0] = 50
    img[1, 1] = 220
    lightness = extract_lightness(img)
    assert lightness[1, 1] > lightness[0, 0] >= lightness[0, 1]


def test_boosted_lightness_replicates_planes(random_color_image):
    boosted = boosted_lightness(random_color_image, ContrastEnhancer())
    assert boosted.shape == random_color_image.shape
    assert np.array_equal(boosted[:, :, 0], boosted[:, :, 1])
    assert np.array_equal(boosted[:, :, 0], boosted[:, :, 2])


# ── ContrastEnhancer ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("level", [0, 1, 128, 254, 255])
def test_constant_input_stays_flat(level):
    flat = np.full((64, 64), level, dtype=np.uint8)
    out = ContrastEnhancer(clip_limit=3).enhance(flat)
    assert out.shape == flat.shape
    assert int(out.max()) - int(out.min()) <= 1


def test_enhance_rejects_color_image():
    with pytest.raises(InvalidInputError):
        ContrastEnhancer().enhance(np.zeros((8, 8, 3), dtype=np.uint8))


def test_enhance_does_not_modify_input(random_color_image):
    channel = random_color_image[:, :, 1].copy()
    before = channel.copy()
    ContrastEnhancer().enhance(channel)
    assert np.array_equal(channel, before)


def test_enhance_clip_limit_override(random_color_image):
    channel = np.ascontiguousarray(random_color_image[:, :, 0])
    enhancer = ContrastEnhancer(clip_limit=3)
    assert np.array_equal(enhancer.enhance(channel, clip_limit=1.0),
                          apply_clahe(channel, 1.0, (8, 8)))
    assert enhancer.clip_limit == 3.0


def test_enhance_stretches_low_contrast_ramp():
    ramp = np.tile(np.arange(100, 132, dtype=np.uint8), (32, 1))
    out = ContrastEnhancer().enhance(ramp)
    assert np.ptp(out) > np.ptp(ramp)


def test_enhance_handles_images_smaller_than_grid():
    tiny = np.arange(15, dtype=np.uint8).reshape(3, 5)
    assert ContrastEnhancer().enhance(tiny).shape == (3, 5)


# ── Median filter ────────────────────────────────────────────────────────────

def test_median_removes_isolated_pixel():
    img = np.zeros((9, 9), dtype=np.uint8)
    img[4, 4] = 255
    assert not median_denoise(img, 3).any()


def test_median_ksize_one_is_a_copy():
    img = np.eye(5, dtype=np.uint8) * 255
    out = median_denoise(img, 1)
    assert np.array_equal(out, img)
    assert out is not img
