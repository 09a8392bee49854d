"""
Acrophylia - a real-time multiplayer acronym party game server.
"""

__version__ = "1.0.0"
