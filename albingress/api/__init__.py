"""Health and metrics HTTP API for albingress."""

from albingress.api.app import create_app

__all__ = ["create_app"]
