"""Shared fixtures for rfcpath tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
BOOKSTORE_PATH = FIXTURES_DIR / "bookstore.json"


@pytest.fixture
def bookstore() -> dict[str, object]:
    """The example document from RFC 9535 section 1.5."""
    with open(BOOKSTORE_PATH, encoding="utf-8") as f:
        return json.load(f)
