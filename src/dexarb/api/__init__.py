"""HTTP control surface."""

from dexarb.api.server import create_app


__all__ = ["create_app"]
