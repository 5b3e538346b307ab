from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from .coordinator import ViewCoordinator


class BaseView(ABC):
    """
    Abstract base class for every view fed by the coordinator.

    Defines the contract that every view must follow
    - expose an 'id' - the data channel it is fed from
      (document_count, text_length, world_map, language_count, cluster_count)
    - expose a 'label' - used for UI/human-readable applications
    - implement 'prepare' - one-off setup, no filter dependency
    - implement 'update' - receive the aggregate for the current filters

    Views raise filter intents through `self.coordinator.dispatch`.
    """

    id: str = None
    label: str = None

    def __init__(self, coordinator: Optional[ViewCoordinator] = None):
        self.coordinator = coordinator

    @abstractmethod
    def prepare(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    def update(self, data: Sequence[Any]) -> None:
        """
        :param data: ordered aggregate rows; an empty sequence means
            "nothing under the current filters" and must render an empty state
        """
        raise NotImplementedError()


class HostShell(ABC):
    """The surrounding UI, notified after every committed refresh."""

    @abstractmethod
    def update_selected(self, count: int) -> None:
        raise NotImplementedError()

    @abstractmethod
    def filter_event(self) -> None:
        raise NotImplementedError()
