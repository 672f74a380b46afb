"""
Taskgate - governance engine for an organisational task tracker.
"""

__version__ = "0.1.0"
