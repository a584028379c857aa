"""API routers."""

from . import migrations

__all__ = ["migrations"]
