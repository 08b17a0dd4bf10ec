#!/usr/bin/env python3
"""
Review Board Slack bot - main entry point.

Usage:
  python review_bot.py <slack_token> [options]
"""

import sys

from reviewbot.app import main


if __name__ == "__main__":
    sys.exit(main())
