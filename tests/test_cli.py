"""
Tests for the spot-difference command line entry point.
"""
import json

import numpy as np
import pytest
from PIL import Image as PILImage

from cli.generate_puzzle import main
from conftest import rgba, draw_box_outline


def write_png(path, pixels):
    PILImage.fromarray(pixels).save(path)
    return path


def test_exports_puzzle(tmp_path):
    pixels = rgba(100, 100)
    draw_box_outline(pixels, 10, 10, 42, 42)
    draw_box_outline(pixels, 55, 55, 87, 87)
    source = write_png(tmp_path / "source.png", pixels)
    out = tmp_path / "puzzle"

    assert main([str(source), "--output-dir", str(out), "--seed", "3"]) == 0

    for name in ("original.png", "modified.png", "answers.png", "regions.json"):
        assert (out / name).exists()
    regions = json.loads((out / "regions.json").read_text())
    assert (regions["width"], regions["height"]) == (100, 100)
    assert len(regions["regions"]) == 2

    original = np.array(PILImage.open(out / "original.png"))
    modified = np.array(PILImage.open(out / "modified.png"))
    assert np.array_equal(original, pixels)
    assert not np.array_equal(original, modified)


def test_differences_option(tmp_path):
    pixels = rgba(100, 100)
    draw_box_outline(pixels, 10, 10, 42, 42)
    draw_box_outline(pixels, 55, 55, 87, 87)
    source = write_png(tmp_path / "source.png", pixels)
    out = tmp_path / "one"

    assert main([str(source), "--output-dir", str(out), "--differences", "1"]) == 0
    assert len(json.loads((out / "regions.json").read_text())["regions"]) == 1


def test_missing_image(tmp_path):
    assert main([str(tmp_path / "missing.png"), "--output-dir", str(tmp_path / "out")]) == 1
    assert not (tmp_path / "out").exists()


def test_too_small_image(tmp_path):
    source = write_png(tmp_path / "tiny.png", rgba(2, 2))
    assert main([str(source), "--output-dir", str(tmp_path / "out")]) == 1


@pytest.mark.parametrize("option", ["--seed", "--differences"])
def test_negative_values_rejected(tmp_path, option):
    source = write_png(tmp_path / "flat.png", rgba(30, 30))
    with pytest.raises(SystemExit) as exc:
        main([str(source), "--output-dir", str(tmp_path / "out"), option, "-1"])
    assert exc.value.code == 2
    assert not (tmp_path / "out").exists()


def test_negative_env_seed(tmp_path, monkeypatch):
    monkeypatch.setenv("RANDOM_SEED", "-1")
    source = write_png(tmp_path / "flat.png", rgba(30, 30))
    assert main([str(source), "--output-dir", str(tmp_path / "out")]) == 1
