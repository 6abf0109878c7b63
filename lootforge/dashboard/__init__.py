"""Lootforge dashboard package.

A small FastAPI app for inspecting odds and adjusting rarity weights.
"""

from .app import create_app

__all__ = ("create_app",)
