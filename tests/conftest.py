from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    p = tmp_path / "access.log"
    p.write_text("", encoding="utf-8")
    return p


def append(path: Path, text: str) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(text)
