"""Shared fixtures: synthetic eye images and configuration file writers."""

from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import cv2
import numpy as np
import pytest

EYE_CENTER = (100, 100)
PUPIL_RADIUS = 20
IRIS_RADIUS = 60


def make_eye(size: int = 200, center: Tuple[int, int] = EYE_CENTER, pupil_radius: int = PUPIL_RADIUS,
             iris_radius: int = IRIS_RADIUS, phase: float = 0.0) -> np.ndarray:
    """Bright background, an iris with an angular texture, and a dark pupil."""
    yy, xx = np.mgrid[0:size, 0:size]
    dx = xx - center[0]
    dy = yy - center[1]
    r = np.hypot(dx, dy)
    theta = np.arctan2(dy, dx)

    image = np.full((size, size), 200, dtype=np.uint8)
    texture = (100 + 30 * np.sin(8 * theta + phase)).astype(np.uint8)
    iris = r <= iris_radius
    image[iris] = texture[iris]
    image[r <= pupil_radius] = 20
    return image


def write_config(path: Path, entries: Dict[str, str]) -> Path:
    lines = ["# generated for tests", ""]
    lines += [f"{key} = {value}" for key, value in entries.items()]
    path.write_text("\n".join(lines) + "\n")
    return path


def write_image_list(path: Path, names: Iterable[str]) -> Path:
    path.write_text("\n".join(names) + "\n")
    return path


def write_filters(path: Path, filters: List[np.ndarray]) -> Path:
    lines = [str(len(filters))]
    for kernel in filters:
        lines.append(f"{kernel.shape[0]} {kernel.shape[1]}")
        lines.append(" ".join(f"{v:g}" for v in kernel.ravel()))
    path.write_text("\n".join(lines) + "\n")
    return path


def write_points(path: Path, points: List[Tuple[int, int]]) -> Path:
    lines = [str(len(points))] + [f"{row} {col}" for row, col in points]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def eye_image() -> np.ndarray:
    return make_eye()


@pytest.fixture
def test_filters() -> List[np.ndarray]:
    return [
        np.array([[-1.0, 0.0, 1.0]], dtype=np.float32),
        np.array([[1.0, 2.0, 1.0], [0.0, 0.0, 0.0], [-1.0, -2.0, -1.0]], dtype=np.float32),
    ]


@pytest.fixture
def workspace(tmp_path: Path, test_filters) -> Path:
    """A directory with four eye images, a list, filters, points and a full-pipeline config.

    Images 1 and 2 are identical, images 3 and 4 differ by their texture phase.
    """
    images = tmp_path / "images"
    images.mkdir()
    phases = {"eye1.bmp": 0.0, "eye2.bmp": 0.0, "eye3.bmp": 0.0, "eye4.bmp": 1.0}
    for name, phase in phases.items():
        cv2.imwrite(str(images / name), make_eye(phase=phase))

    write_image_list(tmp_path / "list.txt", phases)
    write_filters(tmp_path / "filters.txt", test_filters)
    write_points(tmp_path / "points.txt", [(row, col) for row in range(2, 14) for col in range(64)])

    write_config(tmp_path / "process.ini", {
        "Process segmentation": "yes",
        "Process normalization": "yes",
        "Process encoding": "yes",
        "Process matching": "yes",
        "Load List of images": "list.txt",
        "Load original images": "images",
        "Save iris codes": "codes",
        "Save contours parameters": "params",
        "Save matching scores": "scores.txt",
        "Width of normalized image": "64",
        "Height of normalized image": "16",
    })
    return tmp_path
