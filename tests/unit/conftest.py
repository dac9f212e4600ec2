"""Shared fixtures for unit tests."""

import logging
from pathlib import Path

import pytest

from code_intel.utils.rich_logging import ROOT_LOGGER_NAME


def write_files(root: Path, files: dict) -> Path:
    """Create ``files`` (relative path -> text) under ``root``."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


@pytest.fixture
def make_project(tmp_path):
    def _make(files: dict, name: str = "project") -> Path:
        return write_files(tmp_path / name, files)
    return _make


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """CLI runs install handlers on the package logger; undo that between tests."""
    pkg_logger = logging.getLogger(ROOT_LOGGER_NAME)
    yield
    for handler in pkg_logger.handlers[:]:
        handler.close()
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True

