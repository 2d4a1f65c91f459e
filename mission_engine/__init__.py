"""
Mission progress engine for the wellness app

Binds a catalog of mission templates to per-user, per-date mission instances
and keeps each instance's progress in sync with recorded tracking data.
"""

__version__ = "1.0.0"
