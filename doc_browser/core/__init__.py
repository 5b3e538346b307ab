"""
Core domain layer: record store, crossfilter index, dimensions and groups,
event dispatcher, search state, and the view coordinator
"""

from .dataset import Dataset
from .crossfilter import CrossfilterIndex
from .dimension import Dimension
from .group import Group
from .dispatcher import EventDispatcher, EventKind
from .search_state import SearchState
from .view_base import BaseView, HostShell
from .view_registry import ViewRegistry
from .coordinator import ViewCoordinator

__all__ = [
    "Dataset",
    "CrossfilterIndex",
    "Dimension",
    "Group",
    "EventDispatcher",
    "EventKind",
    "SearchState",
    "BaseView",
    "HostShell",
    "ViewRegistry",
    "ViewCoordinator",
]
