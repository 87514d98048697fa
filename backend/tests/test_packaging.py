from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parents[2]


def test_declared_packages_and_script_resolve():
    config = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))
    setuptools_cfg = config["tool"]["setuptools"]
    base = ROOT / setuptools_cfg["package-dir"][""]

    for package in setuptools_cfg["packages"]:
        assert (base / package.replace(".", "/")).is_dir()

    module, _, func = config["project"]["scripts"]["region-mapper"].partition(":")
    assert (base / (module.replace(".", "/") + ".py")).is_file()
    assert func == "main"
