"""
Console views, one per tab.

Each view applies domain events to its own state and renders it without
mutating it.
"""

from .apps import AppsView
from .dashboard import DashboardView
from .logs import LogsView
from .peers import PeersView

__all__ = ["AppsView", "DashboardView", "LogsView", "PeersView"]
