"""Full pipeline runs on synthetic eye images."""

import os

import cv2
import pytest

from configuration import Configuration
from pipeline import PipelineOrchestrator


def run(config_path, overrides=None):
    config = Configuration()
    config.load(str(config_path), overrides)
    return config, PipelineOrchestrator(config).run()


def test_full_pipeline(workspace):
    config, summary = run(workspace)

    assert summary.processed == ["eye1.bmp", "eye2.bmp", "eye3.bmp", "eye4.bmp"]
    assert summary.failures == []
    assert [(s.first, s.second) for s in summary.scores] == [("eye1.bmp", "eye2.bmp"), ("eye3.bmp", "eye4.bmp")]
    assert summary.scores[0].score == 0.0
    assert 0.0 <= summary.scores[1].score <= 1.0

    lines = (workspace / "scores.txt").read_text().splitlines()
    assert lines[0] == "eye1.bmp eye2.bmp 0"
    assert lines[1].startswith("eye3.bmp eye4.bmp ")

    code = cv2.imread(str(workspace / "codes" / "eye1_code.bmp"), cv2.IMREAD_GRAYSCALE)
    assert code.shape == (2 * 16, 64)
    params = (workspace / "params" / "eye1_para.txt").read_text().split()
    assert len(params) == 6


def test_matching_from_saved_codes(workspace):
    run(workspace)
    os.remove(workspace / "scores.txt")

    config, summary = run(workspace, {
        "Process segmentation": "no",
        "Process normalization": "no",
        "Process encoding": "no",
        "Load iris codes": "codes",
    })
    assert summary.failures == []
    assert summary.scores[0].score == 0.0
    assert (workspace / "scores.txt").exists()


def test_missing_image_is_isolated(workspace):
    os.remove(workspace / "images" / "eye3.bmp")
    config, summary = run(workspace)

    # The rest of a failed pair is skipped
    assert summary.processed == ["eye1.bmp", "eye2.bmp"]
    assert [failure.names for failure in summary.failures] == [("eye3.bmp",)]
    assert (workspace / "scores.txt").read_text().splitlines() == ["eye1.bmp eye2.bmp 0"]


@pytest.mark.parametrize("use_mask", ["yes", "no"])
def test_segmentation_only(workspace, use_mask):
    config, summary = run(workspace, {
        "Process normalization": "no",
        "Process encoding": "no",
        "Process matching": "no",
        "Use segmentation mask": use_mask,
        "Save masks of iris": "masks",
        "Save segmented images": "segm",
    })
    assert len(summary.processed) == 4
    mask = cv2.imread(str(workspace / "masks" / "eye1_mask.bmp"), cv2.IMREAD_GRAYSCALE)
    if use_mask == "no":
        assert mask.min() == 255
    else:
        assert mask.min() == 0
    assert (workspace / "segm" / "eye1_segm.bmp").exists()
