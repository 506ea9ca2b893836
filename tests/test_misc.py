"""Tests for configuration loading and shared helpers."""

from __future__ import annotations

import pathlib

import pytest

from cgtable.misc import InputError, gen_table_fmt, load_config


def test_defaults_when_missing(tmp_path):
    config = load_config(tmp_path / "missing.toml")
    assert config.max_workers == 0
    assert config.table_filename == "clebsch-gordan.html"
    assert config.multi_filename == "multi-angular.html"
    assert config.log_level == "WARNING"
    assert config.float_precision == 6
    assert isinstance(config.outdir, pathlib.Path)


def test_values_from_file(tmp_path):
    path = tmp_path / "cgtable.toml"
    path.write_text(
        "[cgtable]\n"
        "max_workers = 3\n"
        f"outdir = '{tmp_path.as_posix()}'\n"
        "log_level = 'debug'\n"
        "float_precision = 3\n"
    )
    config = load_config(path)
    assert config.max_workers == 3
    assert config.outdir == tmp_path
    assert config.log_level == "DEBUG"
    assert config.float_precision == 3
    assert config.table_filename == "clebsch-gordan.html"


@pytest.mark.parametrize("line", ["max_workers = -1", "max_workers = 'many'"])
def test_bad_values(tmp_path, line):
    path = tmp_path / "cgtable.toml"
    path.write_text(f"[cgtable]\n{line}\n")
    with pytest.raises(InputError):
        load_config(path)


def test_gen_table_fmt():
    head, fmt = gen_table_fmt([("a", "s>", {"l": 3}), ("b", "s>", {"l": 4})])
    assert head.splitlines() == ["a    b   ", "---  ----"]
    assert fmt.format("x", "yz") == "  x    yz"
