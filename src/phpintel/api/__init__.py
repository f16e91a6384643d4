"""HTTP API package for phpintel (optional).

Install with `pip install 'phpintel[api]'` to use the FastAPI server.
"""

from phpintel.api.app import create_app

__all__ = ["create_app"]
