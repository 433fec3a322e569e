"""Tests for the HSL conversions used by the grade."""

import numpy as np
import pytest

from cinegrade import hsl_to_rgb, rgb_to_hsl


@pytest.fixture
def sample_colors():
    """Generate sample RGB colors."""
    rng = np.random.default_rng(42)
    return rng.random((1000, 3))


class TestRgbToHsl:
    """Test RGB -> HSL conversion."""

    @pytest.mark.parametrize(
        "rgb,expected",
        [
            ((1.0, 0.0, 0.0), (0.0, 1.0, 0.5)),
            ((0.0, 1.0, 0.0), (1.0 / 3.0, 1.0, 0.5)),
            ((0.0, 0.0, 1.0), (2.0 / 3.0, 1.0, 0.5)),
            ((1.0, 1.0, 1.0), (0.0, 0.0, 1.0)),
            ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0)),
            ((0.25, 0.25, 0.25), (0.0, 0.0, 0.25)),
        ],
    )
    def test_primaries_and_grays(self, rgb, expected):
        """Test well-known colors."""
        np.testing.assert_allclose(rgb_to_hsl(np.array(rgb)), expected, atol=1e-12)

    @pytest.mark.parametrize(
        "rgb,hue",
        [
            ((1.0, 1.0, 0.0), 1.0 / 6.0),  # red and green tie: red wins
            ((0.0, 1.0, 1.0), 0.5),  # green and blue tie: green wins
            ((1.0, 0.0, 1.0), 5.0 / 6.0),  # red and blue tie: red wins
        ],
    )
    def test_max_ties(self, rgb, hue):
        """Test hue when two channels share the maximum."""
        h, s, light = rgb_to_hsl(np.array(rgb))

        assert h == pytest.approx(hue)
        assert s == pytest.approx(1.0)
        assert light == pytest.approx(0.5)

    def test_shape_preserved(self, sample_colors):
        """Test [..., 3] inputs keep their shape."""
        image = sample_colors[:999].reshape(27, 37, 3)
        assert rgb_to_hsl(image).shape == (27, 37, 3)

    def test_components_in_unit_range(self, sample_colors):
        """Test h, s, l all stay within [0, 1]."""
        hsl = rgb_to_hsl(sample_colors)
        assert np.all(hsl >= 0.0)
        assert np.all(hsl <= 1.0)

    def test_near_black_is_finite(self):
        """Test tiny chromatic values do not blow up the saturation."""
        hsl = rgb_to_hsl(np.array([1e-12, 0.0, 0.0]))
        assert np.all(np.isfinite(hsl))


class TestHslRoundTrip:
    """Test HSL -> RGB inversion."""

    def test_round_trip(self, sample_colors):
        """Test rgb -> hsl -> rgb recovers 1000 random colors."""
        recovered = hsl_to_rgb(rgb_to_hsl(sample_colors))
        np.testing.assert_allclose(recovered, sample_colors, atol=1e-9)

    def test_zero_saturation_is_gray(self):
        """Test s = 0 yields l on every channel."""
        rgb = hsl_to_rgb(np.array([[0.3, 0.0, 0.42], [0.9, 0.0, 0.1]]))
        np.testing.assert_array_equal(rgb, [[0.42, 0.42, 0.42], [0.1, 0.1, 0.1]])

    def test_hue_wraps(self):
        """Test hue 0 and hue 1 give the same color."""
        np.testing.assert_allclose(
            hsl_to_rgb(np.array([0.0, 1.0, 0.5])), hsl_to_rgb(np.array([1.0, 1.0, 0.5])), atol=1e-12
        )
