"""Shared test fixtures for the A.U.R.A. test suite."""

from __future__ import annotations

import os

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("FASTERBOOK_API_KEY", "test-fasterbook-key-456")
    os.environ.pop("HF_TOKEN", None)


@pytest.fixture
def catalog_payload():
    """A ``GET /api/available`` body with two food items and two movies."""
    return {
        "success": True,
        "message": "Available items fetched",
        "foodItems": [
            {"id": "f1", "name": "Chicken Biryani", "price": 250, "available": True},
            {"id": "f2", "name": "Paneer Pizza", "price": 320, "available": True},
            {"id": "f3", "name": "Sold-out Salad", "price": 150, "available": False},
        ],
        "movies": [
            {"id": "m1", "title": "Interstellar", "price": 200},
            {"id": "m2", "title": "Inception", "price": 180},
        ],
    }


@pytest.fixture
def catalog(catalog_payload):
    from aura.models import Catalog

    return Catalog.from_payload(catalog_payload)
