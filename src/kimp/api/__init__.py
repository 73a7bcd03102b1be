"""HTTP API surface."""

from kimp.api.app import create_app

__all__ = ["create_app"]
