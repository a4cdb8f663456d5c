"""Shared fixtures: the bundled fake project and throwaway projects."""

import shutil
import tempfile
import textwrap
from pathlib import Path

import pytest


FIXTURE_PROJECT = Path(__file__).parent / "fixtures" / "fake_project"


def write_files(root: Path, files: dict) -> None:
    """Write dedented sources below root, creating directories as needed."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")


@pytest.fixture
def fake_project() -> Path:
    """Path of the bundled fake project (module ``test`` with ``play`` and ``wait``)."""
    return FIXTURE_PROJECT


@pytest.fixture
def make_project():
    """
    Factory for temporary projects.

    Every project gets a copy of the fake project's ``mage`` framework
    package next to the files passed in.
    """
    directories = []

    def _make(files: dict) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        directories.append(tmpdir)
        root = Path(tmpdir.name)
        shutil.copytree(
            FIXTURE_PROJECT / "mage",
            root / "mage",
            ignore=shutil.ignore_patterns("__pycache__"),
        )
        write_files(root, files)
        return root

    yield _make

    for tmpdir in directories:
        tmpdir.cleanup()
