"""Shared fixtures for bullet_outline tests."""

import pytest


class SequentialIdSupplier:
    """Deterministic id supplier for tests."""

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
