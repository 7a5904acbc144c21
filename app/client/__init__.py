"""
Transport client for the cleanup API.
"""

from app.client.api_client import ApiClientError, CleanupApiClient

__all__ = ["ApiClientError", "CleanupApiClient"]
