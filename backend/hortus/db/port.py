from __future__ import annotations

import abc
from typing import Optional

from ..schemas.plant import Plant, PlantLog, PlantShortDesc

__all__ = ["PlantNames", "PlantStore"]

# (common_name, generic_name, specific_name)
PlantNames = tuple[str, Optional[str], Optional[str]]


class PlantStore(abc.ABC):
    """
    Storage contract for plants and their log entries.

    Methods are blocking; request handlers run them in the worker thread pool.
    Implementations must be safe to call from many threads at once. Each write
    is a single insert returning the identifier assigned by the store; nothing
    spans more than one statement.

    Failures are reported with the StorageError family from ``errors``:
    QueryFailedError / InsertFailedError carry the driver message,
    PlantNotFoundError marks a missing plant row, StoreUnavailableError marks
    a retryable condition.
    """

    @abc.abstractmethod
    def connect(self) -> None:
        """Open the store and check that the required tables exist.

        Raises ConfigMissingError, ConnectionFailedError or SchemaMissingError.
        """

    @abc.abstractmethod
    def close(self) -> None:
        """Release every resource held by the store. Never raises."""

    @abc.abstractmethod
    def list_plants_short_description(self) -> list[PlantShortDesc]:
        ...

    @abc.abstractmethod
    def add_plant(self, common_name: str, generic_name: str, specific_name: str) -> int:
        """Insert a plant from already sanitized names and return its id."""

    @abc.abstractmethod
    def get_plant_names(self, plant_id: int) -> PlantNames:
        ...

    @abc.abstractmethod
    def list_plant_logs(self, plant_id: int) -> list[PlantLog]:
        """Return the logs of a plant; an unknown plant simply has none."""

    @abc.abstractmethod
    def add_plant_log(self, plant_id: int, desc: str, event_type: int) -> int:
        """Insert a log entry and return its id.

        The plant reference is checked by the store's foreign key only.
        """

    def get_plant(self, plant_id: int) -> Plant:
        """Assemble a Plant from its names and its log entries."""
        common_name, generic_name, specific_name = self.get_plant_names(plant_id)
        logs = self.list_plant_logs(plant_id)
        return Plant(
            id=plant_id,
            common_name=common_name,
            generic_name=generic_name,
            specific_name=specific_name,
            logs=logs,
        )
