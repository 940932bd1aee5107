import os
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))


def make_jpeg(path: Path, size=(400, 300), color=(255, 255, 255)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format="JPEG", quality=95)
    return path


@pytest.fixture
def pictures_dir(tmp_path):
    d = tmp_path / "pictures"
    d.mkdir()
    return d


@pytest.fixture
def uploads_root(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def raw_jpeg(pictures_dir):
    return make_jpeg(pictures_dir / "IMG_1700000000000.jpg")
