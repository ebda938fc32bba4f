"""
livedash - Live dashboard for the club room screen.

Polls the song history database, the door-scan table and the tap order feed,
and renders always-fresh state in a Textual terminal UI, including a
scrolling lyrics display kept in step with the song that is playing.
"""

__version__ = "0.1.0"
