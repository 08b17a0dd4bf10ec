"""
Configuration package for the Review Board Slack bot.
"""

from .settings import Settings

__all__ = ["Settings"]
