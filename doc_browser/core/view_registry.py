from __future__ import annotations
from typing import TYPE_CHECKING, Dict, List, Optional, Type

from .view_base import BaseView

if TYPE_CHECKING:
    from .coordinator import ViewCoordinator


class ViewRegistry:
    """
    Registry for view classes so the coordinator can build its views on each dataset load

    Purpose:
    - Decouples the coordinator from concrete view implementations by exposing {@link create(view_id, coordinator)}
    - The coordinator feeds each created view from the data channel named by the view's 'id'

    Design Notes:
    - Stores the subclasses of {@link BaseView}, not instances, so views are rebuilt wholesale with the dataset
    - Enforces variants:
        * only {@link BaseView} subclasses can be registered
        * each view 'id' is unique across the registry
    """

    def __init__(self):
        self._views: Dict[str, Type[BaseView]] = {}

    def register(self, view_cls: Type[BaseView]) -> Type[BaseView]:
        """
        Register a {@link BaseView} with the registry. Returns the class so it
        can be used as a decorator.

        :param view_cls: the subclass of {@link BaseView}

        Raises:
            TypeError: if view_cls is not a subclass of {@link BaseView}
            ValueError: if a view with same 'id' already exists
        """
        if not isinstance(view_cls, type) or not issubclass(view_cls, BaseView):
            raise TypeError(f"View '{getattr(view_cls, 'id', view_cls)}' must be a subclass of BaseView")

        if view_cls.id in self._views:
            raise ValueError(f"View '{view_cls.id}' already registered")

        self._views[view_cls.id] = view_cls
        return view_cls

    def create(self, view_id: str, coordinator: Optional[ViewCoordinator] = None) -> BaseView:
        """
        Instantiate the view registered under view_id

        Raises:
            KeyError: if no view with the given id exists in the registry
        """
        try:
            cls = self._views[view_id]
        except KeyError:
            raise KeyError(f"View '{view_id}' not found")
        return cls(coordinator)

    def create_all(self, coordinator: Optional[ViewCoordinator] = None) -> Dict[str, BaseView]:
        return {view_id: self.create(view_id, coordinator) for view_id in self._views}

    def all_classes(self) -> List[Type[BaseView]]:
        return list(self._views.values())
