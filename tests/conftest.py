"""
Shared test configuration.

Adds src/ to sys.path so the flat modules (pain_engine, schema, ...) and the
patterns/ and insights/ packages import the same way they do when installed,
and provides entry-building fixtures.
"""

import os
import sys
from datetime import datetime, timedelta

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from schema import Entry  # noqa: E402

# Monday, so daily series line up with ISO weekdays
REFERENCE = datetime(2024, 3, 4, 12, 0)


def build_entry(ts, pain, **fields):
    return Entry(timestamp=ts, pain=pain, **fields)


def daily_series(pains, start=None, hour=9, **fields):
    """One entry per calendar day at ``hour``, starting at ``start``."""
    start = start or (REFERENCE - timedelta(days=len(pains))).replace(hour=hour, minute=0)
    return [build_entry(start + timedelta(days=i), p, **fields) for i, p in enumerate(pains)]


@pytest.fixture
def now():
    return REFERENCE


@pytest.fixture
def make_entry():
    return build_entry


@pytest.fixture
def make_daily():
    return daily_series
