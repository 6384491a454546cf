"""
Test configuration and fixtures for the dominant colors tests.
"""
import numpy as np
import pytest
from fastapi.testclient import TestClient

from main import app
from dominant_colors.services.colors import SampleSet


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from dominant_colors.utils.metrics import reset_metrics
    reset_metrics()


@pytest.fixture
def red_blue_samples():
    """One large pure red region and one small pure blue region, as weighted samples."""
    return SampleSet(
        np.array([[0, 255, 255], [120, 255, 255]], dtype=np.uint8),
        np.array([900, 100])
    )


def noisy_patch(center, count, rng, hue_jitter=2, channel_jitter=5):
    """HSV samples scattered around ``center``, clipped to the valid 8-bit ranges."""
    h, s, v = center
    hue = np.clip(h + rng.integers(-hue_jitter, hue_jitter + 1, count), 0, 179)
    sat = np.clip(s + rng.integers(-channel_jitter, channel_jitter + 1, count), 0, 255)
    val = np.clip(v + rng.integers(-channel_jitter, channel_jitter + 1, count), 0, 255)
    return np.stack([hue, sat, val], axis=1).astype(np.uint8)


@pytest.fixture
def patchwork_samples():
    """Four noisy color patches of different sizes plus scattered noise."""
    rng = np.random.default_rng(7)
    patches = [
        noisy_patch((30, 200, 200), 800, rng),
        noisy_patch((100, 180, 160), 500, rng),
        noisy_patch((160, 220, 230), 300, rng),
        noisy_patch((5, 150, 120), 200, rng),
    ]
    noise = np.stack([
        rng.integers(0, 180, 50), rng.integers(0, 256, 50), rng.integers(0, 256, 50)
    ], axis=1).astype(np.uint8)
    return SampleSet(np.vstack(patches + [noise]))
