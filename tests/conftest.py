from __future__ import annotations

import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest

from kodama.config import KodamaConfig
from kodama.environment import BuildEnvironment
from kodama.reporting import Reporter


class Project:
    """A throwaway kodama project rooted in a pytest ``tmp_path``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.trees = root / "trees"
        self.trees.mkdir(parents=True, exist_ok=True)
        (root / "Kodama.toml").write_text("", encoding="utf-8")

    def write(self, name: str, text: str) -> Path:
        """Write a section source below ``trees/``."""
        path = self.trees / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    def env(
        self, mode: typ.Literal["build", "serve"] = "build", config: KodamaConfig | None = None
    ) -> BuildEnvironment:
        return BuildEnvironment(config or KodamaConfig(), self.root, mode=mode)

    def output(self, mode: typ.Literal["build", "serve"] = "build") -> Path:
        return self.env(mode).output_dir


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path / "site")


@pytest.fixture
def reporter() -> Reporter:
    return Reporter()


@pytest.fixture
def env(project: Project) -> BuildEnvironment:
    return project.env()
