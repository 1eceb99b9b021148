"""
Flask API exposing chat, cartridge and message endpoints
"""

from .app_factory import create_app

__all__ = ["create_app"]
