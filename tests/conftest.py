"""Shared test fixtures for all test modules."""

from pathlib import Path

import pytest


class SequentialIdSupplier:
    """Deterministic id supplier: ph_1, ph_2, ... and id_0001, id_0002, ..."""

    def __init__(self):
        self.placeholders = 0
        self.compacts = 0

    def placeholder(self) -> str:
        self.placeholders += 1
        return f"ph_{self.placeholders}"

    def compact(self) -> str:
        self.compacts += 1
        return f"id_{self.compacts:04d}"


@pytest.fixture
def id_supplier():
    """Fresh deterministic id supplier."""
    return SequentialIdSupplier()


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """
    Point Path.home() at a temporary directory.

    Keeps log files and the default config lookup out of the real home.
    """
    home = tmp_path / "fake_home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    monkeypatch.delenv("BULLETGRAPH_INDENT_SIZE", raising=False)
    monkeypatch.delenv("BULLETGRAPH_WRAP_WIDTH", raising=False)
    monkeypatch.delenv("BULLETGRAPH_SPLINES", raising=False)
    return home
