import os

import numpy as np
import pytest

from vesselmask.io_utils import (
    decode_mask,
    encode_mask,
    read_color_image,
    read_mask,
    write_image,
)


def test_png_round_trip_is_lossless(extractor, line_and_square_image):
    mask = extractor.extract(line_and_square_image)
    decoded = decode_mask(encode_mask(mask))
    assert decoded.dtype == np.uint8
    assert np.array_equal(decoded, mask)


def test_write_and_read_back(tmp_path, line_and_square_image):
    img_path = str(tmp_path / "fundus.png")
    write_image(img_path, line_and_square_image)
    assert np.array_equal(read_color_image(img_path), line_and_square_image)

    mask = np.zeros((8, 8), dtype=np.uint8)
    mask[2:5, 3:6] = 255
    mask_path = str(tmp_path / "mask.png")
    write_image(mask_path, mask)
    assert os.path.isfile(mask_path)
    assert np.array_equal(read_mask(mask_path), mask)


def test_read_missing_image(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_color_image(str(tmp_path / "missing.png"))


def test_read_undecodable_image(tmp_path):
    path = tmp_path / "junk.png"
    path.write_bytes(b"not an image")
    with pytest.raises(FileNotFoundError, match="Cannot decode"):
        read_color_image(str(path))


def test_decode_garbage():
    with pytest.raises(ValueError):
        decode_mask(b"definitely not a png")
