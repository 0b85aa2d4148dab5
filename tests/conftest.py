"""
Portfolio Critic Test Configuration

Shared pytest fixtures and configuration for all test types.
"""

import os
from pathlib import Path
from typing import Any, Generator

import pytest

from portfolio_critic.core.config import reset_settings


GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-2.5-flash-preview-09-2025:generateContent"
)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: End-to-end flows through the CLI with mocked HTTP")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path) -> Generator[None, None, None]:
    """Keep every test away from the real ~/.portfolio-critic and env."""
    for key in list(os.environ):
        if key.startswith("PORTFOLIO_CRITIC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(
        "portfolio_critic.core.config.DEFAULT_CONFIG_DIR", tmp_path / ".portfolio-critic"
    )
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def gemini_url() -> str:
    """generateContent URL without the key query parameter."""
    return GEMINI_URL


@pytest.fixture
def gemini_response() -> Any:
    """Factory for a generateContent response body."""
    def _build(text: str = "### Impact\nGood use of metrics.") -> dict[str, Any]:
        return {
            "candidates": [
                {
                    "content": {"role": "model", "parts": [{"text": text}]},
                    "finishReason": "STOP",
                    "index": 0,
                }
            ],
            "usageMetadata": {"promptTokenCount": 512, "candidatesTokenCount": 64},
        }
    return _build
