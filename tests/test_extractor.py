from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from conftest import LINE_COLUMNS, SQUARE
from vesselmask import (
    STAGES,
    InvalidInputError,
    VesselExtractor,
    get_preset,
    segment_image,
)
from vesselmask.visualization import StageRecorder


def test_mask_shape_and_values(extractor, random_color_image):
    mask = extractor.extract(random_color_image)
    assert mask.shape == random_color_image.shape[:2]
    assert mask.dtype == np.uint8
    assert set(np.unique(mask)) <= {0, 255}


@pytest.mark.parametrize("preset", ["default", "plain"])
def test_line_survives_and_speck_is_removed(line_and_square_image, preset):
    mask = VesselExtractor(get_preset(preset)).extract(line_and_square_image)
    assert (mask[:, LINE_COLUMNS] == 255).all()
    assert not mask[SQUARE].any()
    # Nothing else in the image looks like a vessel.
    assert not mask[:, :15].any()
    assert not mask[:, 28:].any()


@pytest.mark.parametrize("shape", [(64, 64, 3), (17, 23, 3), (5, 7, 3)])
def test_black_image_gives_empty_mask(extractor, shape):
    mask = extractor.extract(np.zeros(shape, dtype=np.uint8))
    assert mask.shape == shape[:2]
    assert not mask.any()


def test_repeated_calls_are_identical(extractor, random_color_image):
    first = extractor.extract(random_color_image)
    second = extractor.extract(random_color_image)
    assert first.tobytes() == second.tobytes()
    assert np.array_equal(first, VesselExtractor().extract(random_color_image))


def test_shared_extractor_across_threads(extractor, random_color_image):
    expected = extractor.extract(random_color_image)
    with ThreadPoolExecutor(max_workers=4) as pool:
        masks = list(pool.map(extractor.extract, [random_color_image] * 8))
    assert all(np.array_equal(m, expected) for m in masks)


def test_input_is_not_modified(extractor, line_and_square_image):
    before = line_and_square_image.copy()
    extractor.extract(line_and_square_image)
    assert np.array_equal(line_and_square_image, before)


def test_segment_image_matches_extractor(random_color_image):
    assert np.array_equal(segment_image(random_color_image),
                          VesselExtractor().extract(random_color_image))


def test_extractor_is_callable(extractor, line_and_square_image):
    assert np.array_equal(extractor(line_and_square_image),
                          extractor.extract(line_and_square_image))


@pytest.mark.parametrize("bad", [
    None,
    np.zeros((0, 10, 3), dtype=np.uint8),
    np.zeros((10, 0, 3), dtype=np.uint8),
    np.zeros((10, 10), dtype=np.uint8),
    np.zeros((10, 10, 4), dtype=np.uint8),
    np.zeros((10, 10, 3), dtype=np.float32),
])
def test_invalid_input_fails_fast(extractor, bad):
    with pytest.raises(InvalidInputError):
        extractor.extract(bad)


# ── Observer ─────────────────────────────────────────────────────────────────

def test_observer_sees_every_stage_in_order(line_and_square_image):
    recorder = StageRecorder()
    mask = VesselExtractor(observer=recorder).extract(line_and_square_image)

    assert tuple(recorder.stages) == STAGES
    assert np.array_equal(recorder.stages["mask"], mask)
    assert recorder.stages["lightness"].shape == (64, 64, 3)
    for stage in STAGES[1:]:
        assert recorder.stages[stage].shape == (64, 64)


def test_plain_lightness_stage_is_single_channel(line_and_square_image):
    recorder = StageRecorder()
    VesselExtractor(get_preset("plain"), recorder).extract(line_and_square_image)
    assert recorder.stages["lightness"].shape == (64, 64)


def test_observer_receives_read_only_views(line_and_square_image):
    writable = []

    def observer(stage, image):
        writable.append(image.flags.writeable)

    mask = VesselExtractor(observer=observer).extract(line_and_square_image)
    assert writable == [False] * len(STAGES)
    # The returned mask itself stays writable for the caller.
    mask[0, 0] = 0


def test_observer_errors_propagate(line_and_square_image):
    def observer(stage, image):
        if stage == "threshold":
            raise RuntimeError("display failed")

    with pytest.raises(RuntimeError, match="display failed"):
        VesselExtractor(observer=observer).extract(line_and_square_image)


def test_observer_does_not_change_result(line_and_square_image):
    plain = VesselExtractor().extract(line_and_square_image)
    observed = VesselExtractor(observer=StageRecorder()).extract(line_and_square_image)
    assert np.array_equal(plain, observed)
