"""REST API for budgetkoll."""

from budgetkoll.api.app import create_app

__all__ = ["create_app"]
