"""Numeric contracts of the eyelid image preprocessing pipeline."""

from __future__ import annotations

import numpy as np
import pytest
import pytest_mock
from PIL import Image, ImageFile

from anemia_screening.ai import preprocessing
from anemia_screening.ai.exceptions import (
    InvalidTensorError,
    PreprocessingError,
    UnsupportedFileError,
)
from anemia_screening.ai.preprocessing import (
    IMAGENET_MEAN,
    IMAGENET_STD,
    PIXELS_PER_CHANNEL,
    TENSOR_LENGTH,
    TENSOR_SHAPE,
    load_image,
    normalize,
    preprocess_image,
    tensor_stats,
    to_rgb_buffer,
    validate_tensor,
    validate_upload,
)
from conftest import make_image_bytes


def expected_value(raw: int, channel: int) -> np.float32:
    return np.float32((raw / 255.0 - IMAGENET_MEAN[channel]) / IMAGENET_STD[channel])


def channel_slice(tensor: np.ndarray, channel: int) -> np.ndarray:
    flat = tensor.reshape(-1)
    return flat[channel * PIXELS_PER_CHANNEL:(channel + 1) * PIXELS_PER_CHANNEL]


def test_tensor_has_fixed_shape_and_finite_values(gray_png: bytes) -> None:
    tensor = preprocess_image(gray_png)

    assert tensor.shape == TENSOR_SHAPE
    assert tensor.size == TENSOR_LENGTH == 150528
    assert tensor.dtype == np.float32
    assert np.isfinite(tensor).all()


def test_uniform_gray_matches_imagenet_normalization(gray_png: bytes) -> None:
    tensor = preprocess_image(gray_png)

    for channel in range(3):
        values = channel_slice(tensor, channel)
        expected = (128 / 255 - IMAGENET_MEAN[channel]) / IMAGENET_STD[channel]
        assert values.min() == pytest.approx(expected, abs=1e-4)
        assert values.max() == pytest.approx(expected, abs=1e-4)


def test_normalization_is_bit_exact_float32(gray_png: bytes) -> None:
    tensor = preprocess_image(gray_png)

    for channel in range(3):
        assert channel_slice(tensor, channel)[0] == expected_value(128, channel)


def test_solid_red_lands_in_first_channel_block() -> None:
    tensor = preprocess_image(make_image_bytes(color=(255, 0, 0)))

    red = channel_slice(tensor, 0)
    green = channel_slice(tensor, 1)
    blue = channel_slice(tensor, 2)

    assert np.allclose(red, expected_value(255, 0), atol=1e-4)
    assert np.allclose(green, expected_value(0, 1), atol=1e-4)
    assert np.allclose(blue, expected_value(0, 2), atol=1e-4)


def test_pixel_index_maps_to_channel_offset() -> None:
    image = Image.new("RGB", (224, 224), color=(0, 0, 0))
    image.putpixel((5, 3), (10, 200, 30))
    tensor = normalize(to_rgb_buffer(image))
    flat = tensor.reshape(-1)

    i = 3 * 224 + 5
    assert flat[i] == expected_value(10, 0)
    assert flat[PIXELS_PER_CHANNEL + i] == expected_value(200, 1)
    assert flat[2 * PIXELS_PER_CHANNEL + i] == expected_value(30, 2)
    assert flat[i + 1] == expected_value(0, 0)


def test_alpha_is_dropped_not_composited() -> None:
    image_bytes = make_image_bytes(color=(10, 20, 30, 0), mode="RGBA")

    tensor = preprocess_image(image_bytes)

    assert channel_slice(tensor, 0)[0] == expected_value(10, 0)
    assert channel_slice(tensor, 1)[0] == expected_value(20, 1)
    assert channel_slice(tensor, 2)[0] == expected_value(30, 2)


def test_grayscale_input_is_expanded_to_three_channels() -> None:
    tensor = preprocess_image(make_image_bytes(color=77, mode="L"))

    for channel in range(3):
        assert channel_slice(tensor, channel)[0] == expected_value(77, channel)


def test_non_square_image_is_resized_without_preserving_aspect() -> None:
    image = Image.new("RGB", (640, 100), color=(0, 0, 0))
    # Right half white: after a direct resize the split stays at the middle column
    image.paste((255, 255, 255), (320, 0, 640, 100))

    rgb = to_rgb_buffer(image)

    assert rgb.shape == (224, 224, 3)
    assert rgb[:, 0].max() == 0
    assert rgb[:, -1].min() == 255
    assert rgb[0].tolist() == rgb[-1].tolist()


def test_accepts_file_path(tmp_path) -> None:
    path = tmp_path / "eyelid.jpg"
    Image.new("RGB", (50, 80), color=(128, 128, 128)).save(path, format="JPEG")

    tensor = preprocess_image(str(path))

    assert tensor.shape == TENSOR_SHAPE


def test_gif_and_webp_are_decoded() -> None:
    for fmt in ("GIF", "WEBP"):
        tensor = preprocess_image(make_image_bytes(fmt=fmt))
        assert tensor.size == TENSOR_LENGTH


def test_corrupt_bytes_raise_preprocessing_error() -> None:
    with pytest.raises(PreprocessingError):
        preprocess_image(b"\x89PNG not really an image" * 100)


def test_validate_tensor_rejects_non_finite_values(gray_png: bytes) -> None:
    tensor = preprocess_image(gray_png)
    tensor.reshape(-1)[123] = np.nan

    with pytest.raises(InvalidTensorError):
        validate_tensor(tensor)

    tensor.reshape(-1)[123] = np.inf
    with pytest.raises(InvalidTensorError):
        validate_tensor(tensor)


def test_validate_tensor_rejects_wrong_length() -> None:
    with pytest.raises(InvalidTensorError):
        validate_tensor(np.zeros((1, 3, 224, 223), dtype=np.float32))


def test_tensor_stats_reports_each_channel(gray_png: bytes) -> None:
    stats = tensor_stats(preprocess_image(gray_png))

    assert set(stats) == {"R", "G", "B"}
    assert stats["R"]["mean"] == pytest.approx(float(expected_value(128, 0)), abs=1e-4)


class TestValidateUpload:
    def test_accepts_allowed_image(self) -> None:
        validate_upload("eyelid.jpeg", "image/jpeg", 50_000)
        validate_upload("eyelid.gif", "image/gif", 50_000)
        validate_upload("EYELID.WEBP", "image/webp", 50_000)

    def test_rejects_text_plain(self) -> None:
        with pytest.raises(UnsupportedFileError) as exc_info:
            validate_upload("notes.txt", "text/plain", 5_000)

        assert any("Invalid file type" in error for error in exc_info.value.errors)
        assert "Invalid file extension" in exc_info.value.errors

    def test_rejects_oversized_file(self) -> None:
        with pytest.raises(UnsupportedFileError) as exc_info:
            validate_upload("eyelid.png", "image/png", 10 * 1024 * 1024 + 1)

        assert exc_info.value.errors == ["File size exceeds 10MB limit"]

    def test_accepts_exact_limits(self) -> None:
        validate_upload("eyelid.png", "image/png", 1024)
        validate_upload("eyelid.png", "image/png", 10 * 1024 * 1024)

    def test_rejects_tiny_file(self) -> None:
        with pytest.raises(UnsupportedFileError) as exc_info:
            validate_upload("eyelid.png", "image/png", 1023)

        assert exc_info.value.errors == ["File size too small (minimum 1KB)"]

    def test_rejects_extension_not_matching_type(self) -> None:
        with pytest.raises(UnsupportedFileError) as exc_info:
            validate_upload("eyelid.png", "image/jpeg", 5_000)

        assert "does not match" in exc_info.value.errors[0]

    def test_rejects_missing_name(self) -> None:
        with pytest.raises(UnsupportedFileError):
            validate_upload(None, "image/png", 5_000)


def test_decompression_bomb_is_a_preprocessing_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    with pytest.raises(PreprocessingError) as exc_info:
        preprocess_image(make_image_bytes(size=(300, 200)))

    assert "Could not decode image" in str(exc_info.value)


def test_rejects_dimensions_above_limit_before_decoding(mocker: pytest_mock.MockerFixture) -> None:
    image_bytes = make_image_bytes(color=0, size=(10001, 2), mode="L")
    load = mocker.spy(ImageFile.ImageFile, "load")

    with pytest.raises(PreprocessingError) as exc_info:
        load_image(image_bytes)

    assert "10001x2" in str(exc_info.value)
    load.assert_not_called()


def test_accepts_dimensions_at_limit() -> None:
    image = load_image(make_image_bytes(color=0, size=(10000, 2), mode="L"))

    assert image.size == (10000, 2)


def test_buffer_size_mismatch_stops_before_normalization(
    gray_png: bytes, mocker: pytest_mock.MockerFixture
) -> None:
    mocker.patch.object(Image.Image, "resize", return_value=Image.new("RGB", (223, 224)))
    normalize_spy = mocker.spy(preprocessing, "normalize")

    with pytest.raises(PreprocessingError) as exc_info:
        preprocess_image(gray_png)

    assert "Buffer size mismatch" in str(exc_info.value)
    normalize_spy.assert_not_called()
