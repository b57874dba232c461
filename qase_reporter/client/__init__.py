"""Qase API client module."""

from qase_reporter.client.client import QaseClient

__all__ = ["QaseClient"]
