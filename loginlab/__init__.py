"""Minimal login/registration demo with a brute-force lockout."""

from loginlab.server import create_app

__all__ = ["create_app"]
__version__ = "0.1.0"
