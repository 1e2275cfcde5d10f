"""Tests for linear-to-display color mapping and hex color parsing."""

import numpy as np
import pytest


class TestDisplayChannel:
    """Tests for mapping a single linear channel."""

    @pytest.mark.parametrize(
        "linear, expected",
        [(0.0, 0), (1.0, 255), (-0.5, 0), (4.0, 255), (0.25, 127)],
    )
    def test_reference_values(self, linear, expected):
        """Test the fixed points of the gamma 2 mapping."""
        from src.rtwtui.core.color import to_display_channel

        assert to_display_channel(linear) == expected

    def test_monotonic(self):
        """Test that a brighter linear value never maps to a darker channel."""
        from src.rtwtui.core.color import to_display_channel

        values = np.linspace(-1.0, 3.0, 401)
        channels = [to_display_channel(float(v)) for v in values]

        assert all(a <= b for a, b in zip(channels, channels[1:]))
        assert all(0 <= c <= 255 for c in channels)

    def test_linear_to_gamma_clamps_negatives(self):
        """Test that negative input is treated as zero."""
        from src.rtwtui.core.color import linear_to_gamma

        assert linear_to_gamma(-2.0) == 0.0
        assert linear_to_gamma(0.81) == pytest.approx(0.9)


class TestImageMapping:
    """Tests for the vectorized image mapping."""

    def test_map_image_matches_map_color(self):
        """Test that the vectorized path applies identical math per pixel."""
        from src.rtwtui.core.color import map_color, map_image

        rng = np.random.default_rng(0)
        image = rng.uniform(-0.5, 2.0, size=(4, 5, 3))

        mapped = map_image(image)

        assert mapped.dtype == np.uint8
        assert mapped.shape == (4, 5, 3)
        for y in range(4):
            for x in range(5):
                assert tuple(int(c) for c in mapped[y, x]) == map_color(image[y, x])

    def test_map_image_saturates(self):
        """Test that out-of-range values clamp instead of wrapping."""
        from src.rtwtui.core.color import map_image

        mapped = map_image(np.array([[[100.0, -100.0, 1.0]]]))

        assert mapped[0, 0].tolist() == [255, 0, 255]


class TestHexColors:
    """Tests for hex color parsing."""

    def test_parse_valid_hex(self):
        """Test a well-formed color."""
        from src.rtwtui.core.color import parse_hex_color

        assert parse_hex_color("ff0080") == pytest.approx((1.0, 0.0, 128 / 255))

    @pytest.mark.parametrize("text", ["", "fff", "ff00ff00", "ff00ff0"])
    def test_wrong_length_is_magenta(self, text):
        """Test that malformed input is shown as magenta."""
        from src.rtwtui.core.color import MAGENTA, map_color, parse_hex_color

        assert parse_hex_color(text) == MAGENTA
        assert map_color(parse_hex_color(text)) == (255, 0, 255)

    def test_bad_channel_falls_back_per_channel(self):
        """Test that only the malformed channel is replaced."""
        from src.rtwtui.core.color import parse_hex_color

        assert parse_hex_color("zz8000") == pytest.approx((1.0, 128 / 255, 0.0))
        assert parse_hex_color("00zz00") == pytest.approx((0.0, 0.0, 0.0))
        assert parse_hex_color("0000zz") == pytest.approx((0.0, 0.0, 1.0))

    def test_strict_parse_accepts_hash(self):
        """Test that the strict parser accepts an optional leading '#'."""
        from src.rtwtui.core.color import parse_hex_color_strict

        assert parse_hex_color_strict("#a0a0a0") == pytest.approx((160 / 255,) * 3)

    @pytest.mark.parametrize("text", ["", "12345", "gggggg"])
    def test_strict_parse_rejects(self, text):
        """Test that the strict parser raises ValueError."""
        from src.rtwtui.core.color import parse_hex_color_strict

        with pytest.raises(ValueError):
            parse_hex_color_strict(text)
