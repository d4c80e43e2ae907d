"""
Crash Engine

A demonstration web service exposing canned failure triggers:
- Unrecovered runtime errors mapped to 500-class responses
- A custom forbidden error tagged to map to 403
- Unbounded recursion and a two-lock deadlock
- Diagnostics endpoints for inspecting the fallout
"""

__version__ = "1.0.0"
__author__ = "Crash Engine Development Team"

from crash_engine.config import Settings, get_settings

__all__ = ["__version__", "Settings", "get_settings"]
