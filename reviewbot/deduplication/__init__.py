"""
Deduplication package.

Provides the bounded memory of already-posted review request ids that
keeps the bot from announcing the same request twice.
"""

from .posted_ids import PostedIdBuffer

__all__ = ["PostedIdBuffer"]
