"""Shared fixtures and graph-building helpers for the test suite."""

import logging

import pytest

from common.logging_utils import reset_logging
from constants import Constants
from versioning.graph import ReverseDependsEntry
from versioning.models import VersionId, VersionRange, parse_version


def vid(name, version="1.0.0"):
    """Shorthand for a VersionId."""
    return VersionId(name, parse_version(version))


def vr(low, high):
    """Shorthand for the half-open range [low, high)."""
    return VersionRange(parse_version(low), parse_version(high))


def lookup(**nodes):
    """Build a reverse-dependency lookup from ``name=(depth, [parent names])``."""
    return {
        vid(name): ReverseDependsEntry(depth=depth, parents=frozenset(vid(p) for p in parents))
        for name, (depth, parents) in nodes.items()
    }


@pytest.fixture(autouse=True)
def restore_constants():
    """Undo any config overrides applied to Constants during a test."""
    saved = (Constants.REFERRER_SEPARATOR, Constants.INDENT)
    yield
    Constants.REFERRER_SEPARATOR, Constants.INDENT = saved


@pytest.fixture(autouse=True)
def isolate_logging(monkeypatch):
    """Pin logging env vars and drop handlers the CLI attached to the root logger."""
    monkeypatch.setenv("RANGEGUARD_LOG_LEVEL", "INFO")
    monkeypatch.setenv("RANGEGUARD_LOG_FORMAT", "human")
    monkeypatch.delenv("RANGEGUARD_CONFIG", raising=False)
    root = logging.getLogger()
    saved_level = root.level
    yield
    reset_logging()
    root.setLevel(saved_level)
