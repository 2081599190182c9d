"""
Pytest configuration for the lazy sequence tests.

Puts the project root on the Python path so test files can import lazy,
sequences, utils, models and app directly, and provides shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

from fastapi.testclient import TestClient

from app import app
from utils import clear_performance_metrics


class CallCounter:
    """Callable wrapper counting how often the wrapped function runs."""

    def __init__(self, fn=lambda x: x):
        self.fn = fn
        self.calls = 0

    def __call__(self, x):
        self.calls += 1
        return self.fn(x)


@pytest.fixture
def counter():
    return CallCounter()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_metrics():
    clear_performance_metrics()
    yield
    clear_performance_metrics()
