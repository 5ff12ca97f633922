# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

import pytest
from pydantic import ValidationError

from scanprep.config import PreprocConfig
from scanprep.models import BinarizationMode, EdgeParams, EdgeStrategy

_ENV = [
    "SCANPREP_K",
    "SCANPREP_WINDOW_SIZE",
    "SCANPREP_MODE",
    "SCANPREP_WIPE",
    "SCANPREP_WORKERS",
    "SCANPREP_HWIPE_WINDOW",
    "SCANPREP_HWIPE_THRESHOLD",
    "SCANPREP_HWIPE_MIN_PERCENT",
    "SCANPREP_HWIPE_STRATEGY",
    "SCANPREP_VWIPE_WINDOW",
    "SCANPREP_VWIPE_THRESHOLD",
    "SCANPREP_VWIPE_MIN_PERCENT",
    "SCANPREP_VWIPE_STRATEGY",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_command_line_defaults():
    config = PreprocConfig()

    assert config.k == 0.5
    assert config.window_size == 0
    assert config.mode == BinarizationMode.BINARY
    assert config.wipe
    assert config.horizontal == EdgeParams(window_size=5, threshold=0.05, min_content_percent=30)
    assert config.vertical.window_size == 121
    assert config.vertical.threshold == 0.005
    assert config.vertical.min_content_percent == 30


def test_auto_window_follows_width():
    config = PreprocConfig()

    assert config.threshold_params(2480).window_size == 41
    assert config.threshold_params(2480, k=0.2).k == 0.2
    assert PreprocConfig(window_size=20).threshold_params(2480).window_size == 21


def test_from_env_reads_overrides(monkeypatch):
    monkeypatch.setenv("SCANPREP_K", "0.25")
    monkeypatch.setenv("SCANPREP_MODE", "ZeroInv")
    monkeypatch.setenv("SCANPREP_WIPE", "off")
    monkeypatch.setenv("SCANPREP_VWIPE_WINDOW", "60")
    monkeypatch.setenv("SCANPREP_VWIPE_STRATEGY", "middle-out")

    config = PreprocConfig.from_env()

    assert config.k == 0.25
    assert config.mode == BinarizationMode.ZEROINV
    assert not config.wipe
    assert config.vertical.window_size == 61
    assert config.vertical.strategy == EdgeStrategy.MIDDLE_OUT
    assert config.horizontal.strategy is None


def test_from_env_ignores_malformed_values(monkeypatch):
    monkeypatch.setenv("SCANPREP_K", "lots")
    monkeypatch.setenv("SCANPREP_WINDOW_SIZE", "")
    monkeypatch.setenv("SCANPREP_MODE", "sepia")
    monkeypatch.setenv("SCANPREP_HWIPE_STRATEGY", "sideways")

    config = PreprocConfig.from_env()

    assert config == PreprocConfig()


def test_from_env_keyword_overrides_win(monkeypatch):
    monkeypatch.setenv("SCANPREP_K", "0.1")

    assert PreprocConfig.from_env(k=0.4).k == 0.4


@pytest.mark.parametrize(
    "kwargs",
    [{"k": -0.1}, {"workers": 0}, {"window_size": -1}],
)
def test_out_of_range_config_is_rejected(kwargs):
    with pytest.raises(ValidationError):
        PreprocConfig(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [{"threshold": 1.5}, {"min_content_percent": 101}, {"window_size": 0}],
)
def test_out_of_range_edge_params_are_rejected(kwargs):
    with pytest.raises(ValidationError):
        EdgeParams(**kwargs)


def test_config_is_frozen():
    config = PreprocConfig()

    with pytest.raises(ValidationError):
        config.k = 0.1


def test_from_env_clamps_out_of_range_values(monkeypatch):
    monkeypatch.setenv("SCANPREP_WORKERS", "0")
    monkeypatch.setenv("SCANPREP_K", "-1")
    monkeypatch.setenv("SCANPREP_HWIPE_THRESHOLD", "2")
    monkeypatch.setenv("SCANPREP_HWIPE_WINDOW", "-4")
    monkeypatch.setenv("SCANPREP_VWIPE_MIN_PERCENT", "150")
    monkeypatch.setenv("SCANPREP_VWIPE_THRESHOLD", "nan")

    config = PreprocConfig.from_env()

    assert config.workers == 1
    assert config.k == 0.0
    assert config.horizontal.threshold == 1.0
    assert config.horizontal.window_size == 1
    assert config.vertical.min_content_percent == 100
    assert config.vertical.threshold == 0.005
