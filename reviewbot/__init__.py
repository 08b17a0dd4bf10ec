"""
Review Board to Slack relay bot.

Polls a Review Board instance for pending review requests and posts
a Slack message for every newly updated one.
"""

__version__ = "0.1.0"
