"""
Tests for the conversion pipeline.
"""
import pytest
import base64
import io
from unittest.mock import patch
from PIL import Image

from converter.models import ConversionOptions, ConversionRequest
from converter.utils import encoding
from converter.utils.image_processing import (
    DEFAULT_QUALITY, convert, convert_batch, create_thumbnail, optimize_in_place
)


def make_image(format='JPEG', size=(400, 200), mode='RGB', color='red'):
    """Create an in-memory image and return its bytes."""
    img = Image.new(mode, size, color=color)
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=format)
    return img_bytes.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_image('JPEG')


@pytest.fixture
def png_bytes():
    return make_image('PNG', mode='RGBA', color=(0, 128, 255, 200))


class TestConvert:
    """Tests for convert."""

    @pytest.mark.parametrize('target_format,expected', [
        ('jpeg', 'jpeg'),
        ('JPG', 'jpeg'),
        ('png', 'png'),
        ('webp', 'webp'),
        ('gif', 'gif'),
    ])
    def test_converts_to_target_format(self, jpeg_bytes, target_format, expected):
        result = convert(jpeg_bytes, ConversionOptions(target_format=target_format))

        assert result.success is True
        assert result.error is None
        assert result.metadata.format == expected
        assert (result.metadata.width, result.metadata.height) == (400, 200)
        with Image.open(io.BytesIO(result.buffer)) as output:
            assert output.format.lower() == expected

    def test_metadata_sizes_and_compression_ratio(self, png_bytes):
        result = convert(png_bytes, ConversionOptions(target_format='webp'))

        metadata = result.metadata
        assert metadata.original_size == len(png_bytes)
        assert metadata.size == len(result.buffer)
        assert metadata.compression_ratio == (len(png_bytes) - metadata.size) / len(png_bytes) * 100

    def test_base64_matches_buffer(self, jpeg_bytes):
        result = convert(jpeg_bytes, ConversionOptions(target_format='png'))

        assert base64.b64decode(result.base64) == result.buffer

    def test_unsupported_format_fails(self, jpeg_bytes):
        result = convert(jpeg_bytes, ConversionOptions(target_format='bmp'))

        assert result.success is False
        assert 'bmp' in result.error
        assert result.buffer is None
        assert result.base64 is None
        assert result.metadata is None

    def test_invalid_image_fails_without_raising(self):
        result = convert(b'not an image at all', ConversionOptions(target_format='jpeg'))

        assert result.success is False
        assert result.error

    def test_width_only_keeps_aspect_ratio(self, jpeg_bytes):
        result = convert(jpeg_bytes, ConversionOptions(target_format='jpeg', width=100))

        assert (result.metadata.width, result.metadata.height) == (100, 50)

    def test_does_not_enlarge(self, jpeg_bytes):
        result = convert(jpeg_bytes, ConversionOptions(target_format='jpeg', width=800, height=800))

        assert (result.metadata.width, result.metadata.height) == (400, 200)

    def test_default_fit_is_inside(self, jpeg_bytes):
        result = convert(jpeg_bytes, ConversionOptions(target_format='png', width=100, height=100))

        assert (result.metadata.width, result.metadata.height) == (100, 50)

    def test_cover_fit(self, jpeg_bytes):
        result = convert(jpeg_bytes, ConversionOptions(target_format='png', width=100, height=100, fit='cover'))

        assert (result.metadata.width, result.metadata.height) == (100, 100)

    def test_defaults_applied(self, jpeg_bytes):
        with patch('converter.utils.image_processing.encode', wraps=encoding.encode) as mock_encode:
            convert(jpeg_bytes, ConversionOptions(target_format='webp'))

        args = mock_encode.call_args[0]
        assert args[1:] == ('webp', DEFAULT_QUALITY, True)

    def test_explicit_options_passed_through(self, jpeg_bytes):
        with patch('converter.utils.image_processing.encode', wraps=encoding.encode) as mock_encode:
            convert(jpeg_bytes, ConversionOptions(target_format='jpeg', quality=40, optimize=False))

        args = mock_encode.call_args[0]
        assert args[1:] == ('jpeg', 40, False)

    def test_lower_quality_gives_smaller_jpeg(self):
        img = Image.effect_noise((256, 256), 64).convert('RGB')
        img_bytes = io.BytesIO()
        img.save(img_bytes, format='PNG')
        source = img_bytes.getvalue()

        high = convert(source, ConversionOptions(target_format='jpeg', quality=95))
        low = convert(source, ConversionOptions(target_format='jpeg', quality=20))

        assert low.metadata.size < high.metadata.size
        assert low.metadata.compression_ratio > high.metadata.compression_ratio

    def test_source_image_is_closed(self, jpeg_bytes):
        opened = []
        real_open = Image.open

        def tracking_open(*args, **kwargs):
            img = real_open(*args, **kwargs)
            opened.append(img)
            return img

        with patch('converter.utils.image_processing.Image.open', side_effect=tracking_open):
            result = convert(jpeg_bytes, ConversionOptions(target_format='png', width=100))

        assert result.success is True
        assert opened
        assert all(img.fp is None for img in opened)


class TestOptimizeInPlace:
    """Tests for optimize_in_place."""

    def test_keeps_format(self, jpeg_bytes):
        result = optimize_in_place(jpeg_bytes)

        assert result.success is True
        assert result.metadata.format == 'jpeg'
        assert result.metadata.original_size == len(jpeg_bytes)

    def test_png_stays_png(self, png_bytes):
        result = optimize_in_place(png_bytes, quality=60)

        assert result.metadata.format == 'png'

    def test_invalid_image(self):
        result = optimize_in_place(b'not an image at all')

        assert result.success is False
        assert result.error


class TestCreateThumbnail:
    """Tests for create_thumbnail."""

    def test_default_square_webp(self, jpeg_bytes):
        result = create_thumbnail(jpeg_bytes)

        assert result.success is True
        assert result.metadata.format == 'webp'
        assert (result.metadata.width, result.metadata.height) == (200, 200)

    def test_custom_size_and_format(self, jpeg_bytes):
        result = create_thumbnail(jpeg_bytes, size=64, target_format='png')

        assert result.metadata.format == 'png'
        assert (result.metadata.width, result.metadata.height) == (64, 64)

    def test_small_source_not_enlarged(self):
        result = create_thumbnail(make_image('JPEG', size=(50, 50)))

        assert (result.metadata.width, result.metadata.height) == (50, 50)


class TestConvertBatch:
    """Tests for convert_batch."""

    def test_failure_is_isolated_and_order_kept(self, jpeg_bytes, png_bytes):
        requests = [
            ConversionRequest(jpeg_bytes, ConversionOptions(target_format='png')),
            ConversionRequest(jpeg_bytes, ConversionOptions(target_format='bmp')),
            ConversionRequest(png_bytes, ConversionOptions(target_format='webp')),
            ConversionRequest(png_bytes, ConversionOptions(target_format='jpeg', width=40)),
        ]

        results = convert_batch(requests, max_workers=4)

        assert [r.success for r in results] == [True, False, True, True]
        assert results[0].metadata.format == 'png'
        assert 'bmp' in results[1].error
        assert results[2].metadata.format == 'webp'
        assert results[3].metadata.format == 'jpeg'
        assert results[3].metadata.width == 40

    def test_empty_batch(self):
        assert convert_batch([]) == []
