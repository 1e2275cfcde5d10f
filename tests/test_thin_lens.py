"""Tests for the thin-lens camera.

Tests cover:
- Orthonormal basis from look-at parameters
- Top-left pixel ordering and jitter bounds
- Degenerate up vector fallback
- Defocus blur origins
"""

import numpy as np
import pytest


def _config(**overrides):
    from src.rtwtui.camera.config import RenderFields, resolve_export_config

    values = dict(image_width="4", image_height="2", samples="1", bounces="1",
                  camera_x="0", camera_y="0", camera_z="0",
                  look_x="0", look_y="0", look_z="-1", fov="90", focus_dist="1")
    values.update(overrides)
    return resolve_export_config(RenderFields(**values))


class TestCameraBasis:
    """Tests for the camera coordinate frame."""

    def test_basis_is_orthonormal(self):
        """Test that u, v, w are unit length and mutually perpendicular."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(camera_x="-1", look_z="0.3"), seed=0)

        for vec in (camera.u, camera.v, camera.w):
            assert np.linalg.norm(vec) == pytest.approx(1.0)
        assert np.dot(camera.u, camera.v) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(camera.v, camera.w) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(camera.u, camera.w) == pytest.approx(0.0, abs=1e-12)

    def test_looking_down_negative_z(self):
        """Test the standard frame: right is +x, up is +y, backward is +z."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(), seed=0)
        info = camera.get_camera_info()

        assert info["u"] == pytest.approx((1.0, 0.0, 0.0))
        assert info["v"] == pytest.approx((0.0, 1.0, 0.0))
        assert info["w"] == pytest.approx((0.0, 0.0, 1.0))

    def test_straight_down_view_has_valid_basis(self):
        """Test that looking parallel to the up vector still yields a basis."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(camera_y="5", look_z="0"), seed=0)

        assert np.all(np.isfinite(camera.u))
        assert np.linalg.norm(camera.u) == pytest.approx(1.0)


class TestRayGeneration:
    """Tests for ray_for()."""

    def test_pixel_order_is_top_left_first(self):
        """Test that x grows to the right and y grows downward."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(), seed=1)
        top_left = camera.ray_for(0, 0).direction
        bottom_right = camera.ray_for(3, 1).direction

        assert top_left[0] < 0.0 < bottom_right[0]
        assert top_left[1] > 0.0 > bottom_right[1]

    def test_jitter_stays_inside_pixel(self):
        """Test that samples land within the pixel's square on the focus plane."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(), seed=2)
        # 90 degree fov at distance 1: the viewport spans [-1, 1] vertically
        # and [-2, 2] horizontally, so each pixel is 1 x 1
        for _ in range(100):
            d = camera.ray_for(0, 0).direction
            assert -2.0 <= d[0] <= -1.0
            assert 0.0 <= d[1] <= 1.0
            assert d[2] == pytest.approx(-1.0)

    def test_pinhole_origin_is_camera_center(self):
        """Test that a zero aperture keeps every ray at the camera position."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(camera_x="1", look_x="1"), seed=3)

        for _ in range(10):
            assert camera.ray_for(1, 1).origin == pytest.approx((1.0, 0.0, 0.0))

    def test_aperture_spreads_origins_on_lens(self):
        """Test that defocus blur moves origins within the lens disk."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(aperture="10"), seed=4)
        radius = np.tan(np.radians(5.0))
        origins = np.array([camera.ray_for(2, 1).origin for _ in range(50)])

        assert np.all(np.linalg.norm(origins, axis=1) < radius + 1e-12)
        assert np.all(origins[:, 2] == 0.0)
        assert len({tuple(o) for o in origins}) > 1

    def test_seed_makes_rays_reproducible(self):
        """Test that two cameras with the same seed produce identical rays."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        a = ThinLensCamera.from_config(_config(), seed=7)
        b = ThinLensCamera.from_config(_config(), seed=7)

        for _ in range(5):
            np.testing.assert_array_equal(a.ray_for(1, 0).direction, b.ray_for(1, 0).direction)


class TestRowGeneration:
    """Tests for rays_for_row()."""

    def test_shapes_and_dtype(self):
        """Test one ray per sample for every pixel of the row."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(), seed=0)
        origins, directions = camera.rays_for_row(1, 3)

        assert origins.shape == directions.shape == (4 * 3, 3)
        assert origins.dtype == directions.dtype == np.float32
        assert origins.flags["C_CONTIGUOUS"] and directions.flags["C_CONTIGUOUS"]

    def test_samples_grouped_by_pixel_inside_their_square(self):
        """Test that each pixel's samples are adjacent and stay in that pixel."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(), seed=5)
        _, directions = camera.rays_for_row(0, 25)

        # Each pixel is 1 x 1 on the focus plane, the row spans x in [-2, 2]
        for x in range(4):
            block = directions[x * 25:(x + 1) * 25]
            assert np.all(block[:, 0] >= -2.0 + x - 1e-6)
            assert np.all(block[:, 0] <= -1.0 + x + 1e-6)
            assert np.all((block[:, 1] >= -1e-6) & (block[:, 1] <= 1.0 + 1e-6))
            np.testing.assert_allclose(block[:, 2], -1.0, atol=1e-6)

    def test_pinhole_row_origins(self):
        """Test that a zero aperture puts every row origin at the camera."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(camera_x="1", look_x="1"), seed=3)
        origins, _ = camera.rays_for_row(1, 4)

        np.testing.assert_allclose(origins, np.broadcast_to([1.0, 0.0, 0.0], origins.shape))

    def test_aperture_row_origins_on_lens(self):
        """Test that defocus origins for a row fall inside the lens disk."""
        from src.rtwtui.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera.from_config(_config(aperture="10"), seed=4)
        radius = np.tan(np.radians(5.0))
        origins, _ = camera.rays_for_row(0, 50)

        assert np.all(np.linalg.norm(origins, axis=1) < radius + 1e-6)
        np.testing.assert_allclose(origins[:, 2], 0.0, atol=1e-7)
        assert len({tuple(o) for o in origins}) > 1
