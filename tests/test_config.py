from __future__ import annotations

import json
from pathlib import Path

import pytest

from imgfit.codecs import Codec, clamp_quality
from imgfit.config import AppConfig, SearchConfig, load_config
from imgfit.models import CodecPolicy, FixedParameterRequest, TargetSizeRequest


def test_defaults():
    cfg = load_config(None)

    assert cfg == AppConfig()
    assert cfg.search.quality_range(Codec.WEBP) == (20, 95)
    assert cfg.search.max_probes == 10
    assert cfg.search.min_target_bytes == 10 * 1024
    assert cfg.search.auto_candidates() == [Codec.AVIF, Codec.WEBP, Codec.JPEG]
    assert cfg.temp.app_tag == "toolsx-"


def test_json_overrides(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(
        json.dumps(
            {
                "search": {
                    "max_probes": 6,
                    "quality_ranges": {"avif": [30, 90]},
                    "auto_codecs": ["webp", "jpeg"],
                    "parallel_codecs": True,
                    "unknown": 1,
                },
                "convert": {"icon_sizes": [16, 48]},
                "temp": {"app_tag": "mine-", "root": str(tmp_path)},
                "jobs": 3,
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.search.max_probes == 6
    assert cfg.search.quality_range(Codec.AVIF) == (30, 90)
    assert cfg.search.quality_range(Codec.JPEG) == (20, 95)
    assert cfg.search.auto_candidates() == [Codec.WEBP, Codec.JPEG]
    assert cfg.search.parallel_codecs is True
    assert cfg.convert.icon_sizes == (16, 48)
    assert cfg.temp.app_tag == "mine-"
    assert cfg.temp.root == tmp_path
    assert cfg.jobs == 3


def test_yaml_overrides(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "cfg.yaml"
    path.write_text("search:\n  min_quality: 30\n  max_quality: 80\n", encoding="utf-8")

    cfg = load_config(path)

    assert cfg.search.quality_range(Codec.JPEG) == (30, 80)


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.json")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_quality": 90, "max_quality": 20},
        {"min_quality": 0},
        {"max_quality": 101},
        {"max_probes": 0},
        {"auto_codecs": ("png",)},
        {"quality_ranges": {"webp": (50, 10)}},
    ],
)
def test_invalid_search_config(kwargs):
    with pytest.raises(ValueError):
        SearchConfig(**kwargs)


def test_invalid_override_is_rejected(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"search": {"min_quality": 99, "max_quality": 10}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


@pytest.mark.parametrize("given, expected", [(None, 80), (55.5, 56), (1000, 100), (-1, 1), (float("inf"), 80)])
def test_clamp_quality(given, expected):
    assert clamp_quality(given) == expected


def test_codec_parse():
    assert Codec.parse("JPG") is Codec.JPEG
    assert Codec.parse(" webp ") is Codec.WEBP
    assert Codec.JPEG.extension == "jpg"
    assert not Codec.PNG.is_lossy and Codec.AVIF.is_lossy
    with pytest.raises(ValueError, match="unknown codec"):
        Codec.parse("bmp")


def test_requests():
    req = TargetSizeRequest.from_kib("a.png", 299.6)
    assert req.target_bytes == 300 * 1024
    assert req.policy.is_auto
    assert isinstance(req.input_path, Path)
    assert TargetSizeRequest.from_kib("a.png", 0.2).target_bytes == 1024

    fixed = FixedParameterRequest(input_path="a.png", codec="jpg")
    assert fixed.codec is Codec.JPEG

    assert CodecPolicy.keep_codec("avif").keep is Codec.AVIF

    for bad in (0, -5, 1.5):
        with pytest.raises(ValueError):
            TargetSizeRequest(input_path="a.png", target_bytes=bad)
    with pytest.raises(ValueError):
        TargetSizeRequest.from_kib("a.png", float("nan"))
