"""Tests for resumable scanline render jobs.

This module tests the RenderJob class including:
- Initial state
- Stepping one scanline at a time
- Progress callbacks and generators
- Image output
"""

import numpy as np
import pytest


def _job(fixed_camera, evaluator, scene, width=3, height=4, samples=2):
    from src.rtwtui.camera.config import RenderBudget
    from src.rtwtui.core.accumulator import SampleAccumulator
    from src.rtwtui.core.progressive import RenderJob

    budget = RenderBudget(samples=samples, bounces=1, width=width, height=height)
    return RenderJob(SampleAccumulator(fixed_camera, evaluator, scene, budget))


class TestRenderJobInit:
    """Test RenderJob initialization."""

    def test_new_job_has_no_rows(self, fixed_camera, constant_evaluator, empty_scene):
        """Test that a new job starts at row 0 with zero progress."""
        job = _job(fixed_camera, constant_evaluator(), empty_scene)

        assert job.next_row == 0
        assert job.progress == 0.0
        assert not job.done
        assert (job.width, job.height) == (3, 4)
        assert fixed_camera.requests == []


class TestRenderJobStep:
    """Test rendering one scanline at a time."""

    def test_step_renders_one_row(self, fixed_camera, constant_evaluator, empty_scene):
        """Test that step() fills exactly the next row."""
        job = _job(fixed_camera, constant_evaluator((1.0, 1.0, 1.0)), empty_scene)

        fraction = job.step()

        assert fraction == 0.25
        assert job.next_row == 1
        image = job.get_image()
        np.testing.assert_allclose(image[0], 1.0)
        np.testing.assert_allclose(image[1:], 0.0)

    def test_step_after_done_raises(self, fixed_camera, constant_evaluator, empty_scene):
        """Test that stepping a finished job is an error."""
        job = _job(fixed_camera, constant_evaluator(), empty_scene, height=1)
        job.step()

        assert job.done
        with pytest.raises(RuntimeError, match="already complete"):
            job.step()


class TestRenderJobProgress:
    """Test progress reporting."""

    @pytest.mark.parametrize("height", [1, 3, 7])
    def test_callback_sequence_is_exact(self, height, fixed_camera, constant_evaluator, empty_scene):
        """Test that an N-row render reports exactly 1/N, 2/N, ..., N/N."""
        job = _job(fixed_camera, constant_evaluator(), empty_scene, height=height)
        reported = []

        job.run(reported.append)

        assert reported == [k / height for k in range(1, height + 1)]
        assert reported[-1] == 1.0

    def test_run_without_callback(self, fixed_camera, constant_evaluator, empty_scene):
        """Test that run() returns the full linear image."""
        job = _job(fixed_camera, constant_evaluator((0.5, 0.5, 0.5)), empty_scene)

        image = job.run()

        assert image.shape == (4, 3, 3)
        np.testing.assert_allclose(image, 0.5)

    def test_generator_can_be_abandoned(self, fixed_camera, constant_evaluator, empty_scene):
        """Test that a host can stop after some rows and resume later."""
        job = _job(fixed_camera, constant_evaluator(), empty_scene)
        generator = job.render_progressive()

        assert next(generator) == 0.25
        assert next(generator) == 0.5
        generator.close()
        assert job.next_row == 2

        assert list(job.render_progressive()) == [0.75, 1.0]
        assert job.done


class TestRenderJobOutput:
    """Test image output."""

    def test_uint8_output_is_gamma_mapped(self, fixed_camera, constant_evaluator, empty_scene):
        """Test that the 8-bit image uses the display mapping."""
        job = _job(fixed_camera, constant_evaluator((0.25, 1.0, 0.0)), empty_scene)
        job.run()

        pixels = job.get_image_uint8()

        assert pixels.dtype == np.uint8
        assert pixels[0, 0].tolist() == [127, 255, 0]

    def test_repr(self, fixed_camera, constant_evaluator, empty_scene):
        """Test the debug representation."""
        job = _job(fixed_camera, constant_evaluator(), empty_scene)

        assert repr(job) == "RenderJob(width=3, height=4, next_row=0)"
