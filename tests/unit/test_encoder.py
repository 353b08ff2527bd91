"""Unit tests for epaper_calendar.rendering.encoder."""

import io

import pytest
from PIL import Image

from epaper_calendar.core.exceptions import RenderError
from epaper_calendar.rendering.encoder import (
    OutputMode,
    black_plane,
    boost_contrast,
    encode,
    red_plane,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def tricolour() -> Image.Image:
    """30x10 canvas: white, black and red vertical bands."""
    canvas = Image.new("RGB", (30, 10), (255, 255, 255))
    canvas.paste((0, 0, 0), (10, 0, 20, 10))
    canvas.paste((255, 0, 0), (20, 0, 30, 10))
    return canvas


def decode(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data))


class TestBoostContrast:
    """Tests for boost_contrast."""

    def test_pure_colours_unchanged(self, tricolour):
        boosted = boost_contrast(tricolour)
        assert boosted.getpixel((5, 5)) == (255, 255, 255)
        assert boosted.getpixel((15, 5)) == (0, 0, 0)
        assert boosted.getpixel((25, 5)) == (255, 0, 0)

    def test_mid_tones_pushed_apart(self):
        canvas = Image.new("RGB", (2, 1))
        canvas.putpixel((0, 0), (100, 100, 100))
        canvas.putpixel((1, 0), (160, 160, 160))

        boosted = boost_contrast(canvas)

        assert boosted.getpixel((0, 0))[0] < 100
        assert boosted.getpixel((1, 0))[0] > 160

    def test_agenda_grey_lifted_towards_paper(self):
        """Test the grey bar colour is stretched ninefold around mid-grey."""
        canvas = Image.new("RGB", (1, 1), (137, 136, 136))

        assert boost_contrast(canvas).getpixel((0, 0)) == (213, 204, 204)

    def test_agenda_grey_dithers_to_sparse_ink(self):
        canvas = Image.new("RGB", (40, 40), (137, 136, 136))

        plane = black_plane(boost_contrast(canvas))

        ink = plane.histogram()[0]
        assert ink < 40 * 40 * 0.25


class TestPlanes:
    """Tests for black_plane and red_plane."""

    def test_black_plane_marks_black_and_red_as_ink(self, tricolour):
        """Test the black plane prints under red too, leaving only white as paper."""
        plane = black_plane(tricolour)

        assert plane.mode == "1"
        assert plane.getpixel((5, 5)) == 255
        assert plane.getpixel((15, 5)) == 0
        assert plane.getpixel((25, 5)) == 0

    def test_black_invert_is_pixelwise_complement(self, tricolour):
        plane = black_plane(tricolour)
        inverted = black_plane(tricolour, invert=True)

        assert inverted.mode == "1"
        for x in range(30):
            assert inverted.getpixel((x, 5)) == 255 - plane.getpixel((x, 5))

    def test_red_plane_opaque_only_on_red(self, tricolour):
        plane = red_plane(tricolour)

        assert plane.mode == "RGBA"
        assert plane.getpixel((5, 5)) == (0, 0, 0, 0)
        assert plane.getpixel((15, 5)) == (0, 0, 0, 0)
        assert plane.getpixel((25, 5)) == (255, 0, 0, 255)

    def test_red_plane_ignores_grey(self):
        """Test neutral grey never shows up as accent colour."""
        canvas = Image.new("RGB", (10, 10), (137, 136, 136))
        plane = red_plane(boost_contrast(canvas))

        assert plane.getextrema()[3] == (0, 0)


class TestEncode:
    """Tests for encode."""

    @pytest.mark.parametrize(
        ("output", "mode"),
        [
            (OutputMode.FULL, "RGB"),
            (OutputMode.BLACK, "1"),
            (OutputMode.BLACK_INVERT, "1"),
            (OutputMode.RED, "RGBA"),
        ],
    )
    def test_encode_produces_png_of_expected_mode(self, tricolour, output, mode):
        data = encode(tricolour, output)

        assert data.startswith(PNG_SIGNATURE)
        image = decode(data)
        assert image.size == (30, 10)
        assert image.mode == mode

    def test_encode_accepts_mode_value_string(self, tricolour):
        assert decode(encode(tricolour, "black-invert")).mode == "1"

    def test_encode_is_deterministic(self):
        """Test identical input yields byte-identical output, dithering included."""
        canvas = Image.new("RGB", (40, 40))
        for x in range(40):
            for y in range(40):
                canvas.putpixel((x, y), (x * 6, y * 6, (x + y) * 3))

        for output in OutputMode:
            assert encode(canvas, output) == encode(canvas.copy(), output)

    def test_encode_when_unknown_output_then_value_error(self, tricolour):
        with pytest.raises(ValueError):
            encode(tricolour, "sepia")

    def test_encode_when_save_fails_then_render_error(self, tricolour, monkeypatch):
        def broken_save(*args, **kwargs):
            raise OSError("disk on fire")

        monkeypatch.setattr(Image.Image, "save", broken_save)

        with pytest.raises(RenderError, match="disk on fire"):
            encode(tricolour, OutputMode.FULL)
