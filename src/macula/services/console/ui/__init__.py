"""
UI helpers for the operator console.

Theme and small rich renderables shared by every view.
"""

from .theme import DEFAULT_THEME, Theme
from .widgets import Region

__all__ = ["DEFAULT_THEME", "Region", "Theme"]
