"""Pytest configuration for rtwtui tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session, and small
stand-ins for the camera and scene-evaluation capabilities.
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


class ConstantEvaluator:
    """Evaluator returning the same color for every ray, counting calls."""

    def __init__(self, color=(0.25, 0.5, 1.0)):
        self.color = tuple(color)
        self.calls = 0
        self.bounces_seen = set()

    def evaluate(self, ray, max_bounces, scene):
        self.calls += 1
        self.bounces_seen.add(max_bounces)
        return self.color


class BatchConstantEvaluator(ConstantEvaluator):
    """Constant evaluator that also accepts whole scanlines."""

    def __init__(self, color=(0.25, 0.5, 1.0)):
        super().__init__(color)
        self.batches = []

    def evaluate_batch(self, rays, max_bounces, scene):
        self.batches.append(len(rays))
        self.bounces_seen.add(max_bounces)
        return np.tile(np.asarray(self.color, dtype=np.float32), (len(rays), 1))


class ArrayConstantEvaluator(BatchConstantEvaluator):
    """Constant evaluator that also accepts origin and direction arrays."""

    def __init__(self, color=(0.25, 0.5, 1.0)):
        super().__init__(color)
        self.array_batches = []

    def evaluate_arrays(self, origins, directions, max_bounces, scene):
        self.array_batches.append(origins.shape[0])
        self.bounces_seen.add(max_bounces)
        return np.tile(np.asarray(self.color, dtype=np.float32), (origins.shape[0], 1))


class FailingEvaluator:
    """Evaluator whose capability is unavailable."""

    def evaluate(self, ray, max_bounces, scene):
        raise RuntimeError("evaluator offline")


class FixedCamera:
    """Ray generator recording the pixels it was asked for."""

    def __init__(self):
        self.requests = []

    def ray_for(self, pixel_x, pixel_y):
        from src.rtwtui.core.ray import Ray

        self.requests.append((pixel_x, pixel_y))
        return Ray(np.zeros(3), np.array([0.0, 0.0, -1.0]))


class RowCamera(FixedCamera):
    """Fixed camera that also builds whole scanlines as arrays."""

    def __init__(self, width):
        super().__init__()
        self.width = width
        self.rows = []

    def rays_for_row(self, pixel_y, samples):
        self.rows.append(pixel_y)
        count = self.width * samples
        return np.zeros((count, 3), dtype=np.float32), np.tile([0.0, 0.0, -1.0], (count, 1)).astype(np.float32)


@pytest.fixture
def constant_evaluator():
    """Factory for constant-color evaluators."""
    return ConstantEvaluator


@pytest.fixture
def batch_evaluator():
    """Factory for constant-color evaluators with a batch path."""
    return BatchConstantEvaluator


@pytest.fixture
def array_evaluator():
    """Factory for constant-color evaluators with an array path."""
    return ArrayConstantEvaluator


@pytest.fixture
def row_camera():
    """Factory for cameras producing scanlines of rays as arrays."""
    return RowCamera


@pytest.fixture
def failing_evaluator():
    """An evaluator that always fails."""
    return FailingEvaluator()


@pytest.fixture
def fixed_camera():
    """A camera producing the same ray for every pixel."""
    return FixedCamera()


@pytest.fixture
def empty_scene():
    """A scene with only the default material and no objects."""
    from src.rtwtui.scene.manager import Scene

    return Scene()
