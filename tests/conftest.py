import numpy as np
import pytest

from peelforge_service import config
from peelforge_service.buffers import ImageBuffer

from .helpers import BLACK, solid_rgb

_ENV_VARS = (
    "BORDER_SAMPLE_WIDTH",
    "EDGE_THRESHOLD",
    "COLOR_TOLERANCE",
    "SEED_BAND_WIDTH",
    "CLASSIFIER_STRATEGY",
    "DEFAULT_BRUSH_SIZE",
    "DEBUG",
    "DEBUG_OUTPUT_DIR",
)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


@pytest.fixture
def white_4x4():
    return ImageBuffer.from_array(solid_rgb(4, 4))


@pytest.fixture
def square_10x10():
    """White 10x10 canvas with a 2x2 black square at (4..5, 4..5)."""
    rgb = solid_rgb(10, 10)
    rgb[4:6, 4:6] = BLACK
    return ImageBuffer.from_array(rgb)


@pytest.fixture
def random_image():
    rng = np.random.default_rng(1234)
    return ImageBuffer.from_array(rng.integers(0, 256, size=(24, 32, 3), dtype=np.uint8))
