"""HTTP surface of the retail back office."""

from retail_api.app import API_PREFIX, create_app

__all__ = ["API_PREFIX", "create_app"]
