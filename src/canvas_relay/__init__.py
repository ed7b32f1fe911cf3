"""
Canvas Relay

Polls Canvas LMS course announcements and relays new ones to a
Discord channel, keeping a watermark so restarts don't re-post.
"""

__version__ = "1.0.0"
