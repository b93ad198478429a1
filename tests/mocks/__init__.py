"""Test doubles."""

from .mock_client import MockResearchClient

__all__ = ["MockResearchClient"]
