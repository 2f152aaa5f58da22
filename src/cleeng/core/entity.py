"""
Result entities.

An entity is handed to the caller as soon as an API call is queued and is
filled in once the JSON-RPC response for that call has been reconciled.
Until then every read fails with StateError.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, Type

from cleeng.core.errors import ArgumentError, StateError, UnknownFieldError


class EntityStatus(str, Enum):
    """Population state of an entity."""
    PENDING = "pending"           # Call queued or in flight, no data yet
    POPULATED = "populated"       # Filled from a successful response


def _as_mapping(data: Any) -> Dict[str, Any]:
    """Normalize a mapping or an iterable of key/value pairs into a dict."""
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, (str, bytes)) or data is None:
        raise ArgumentError("Data must be a mapping or an iterable of key/value pairs.")
    try:
        return dict(data)
    except (TypeError, ValueError) as e:
        raise ArgumentError(
            "Data must be a mapping or an iterable of key/value pairs."
        ) from e


class Entity:
    """
    Base class for objects returned by the Cleeng API.

    Subclasses declare the field names they know about in ``FIELDS``.
    Declared fields the server did not send read as None; keys the server
    sent that are not declared are kept in ``extra`` and stay readable.

    Fields can be read as attributes, with ``entity["name"]`` or with
    ``entity.get("name")``. All of them fail while the entity is pending.
    """

    FIELDS: ClassVar[Tuple[str, ...]] = ()

    def __init__(self):
        self._status = EntityStatus.PENDING
        self._data: Dict[str, Any] = {}
        self._extra: Dict[str, Any] = {}

    @property
    def pending(self) -> bool:
        """True until the entity has been populated from a response."""
        return self._status == EntityStatus.PENDING

    @property
    def entity_status(self) -> EntityStatus:
        return self._status

    @property
    def extra(self) -> Dict[str, Any]:
        """Fields returned by the server that this entity does not declare."""
        self._ensure_populated()
        return dict(self._extra)

    def parse(self, data: Any) -> Dict[str, Any]:
        """
        Validate API data for this entity without changing it.

        Args:
            data: Mapping or iterable of key/value pairs

        Returns:
            Normalized data, ready for ``apply()``

        Raises:
            ArgumentError: If data is neither
        """
        return _as_mapping(data)

    def apply(self, data: Dict[str, Any]) -> None:
        """Store data returned by ``parse()`` and mark the entity populated."""
        for key, value in data.items():
            if key in self.FIELDS:
                self._data[key] = value
            else:
                self._extra[key] = value
        self._status = EntityStatus.POPULATED

    def populate(self, data: Any) -> None:
        """
        Populate the entity with data received from the API.

        Args:
            data: Mapping or iterable of key/value pairs

        Raises:
            ArgumentError: If data is neither
        """
        self.apply(self.parse(data))

    def get(self, name: str) -> Any:
        """
        Read a field.

        Raises:
            StateError: If the entity was not populated yet
            UnknownFieldError: If the field does not exist
        """
        self._ensure_populated()
        if name in self._data:
            return self._data[name]
        if name in self._extra:
            return self._extra[name]
        if name in self.FIELDS:
            return None
        raise UnknownFieldError(type(self).__name__, name)

    def _ensure_populated(self) -> None:
        if self._status == EntityStatus.PENDING:
            raise StateError("Object is not received from API yet (not yet populated).")

    def __getattr__(self, name: str) -> Any:
        # Only called when normal lookup fails; private names never map to fields.
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __contains__(self, name: str) -> bool:
        self._ensure_populated()
        return self._data.get(name) is not None or name in self._extra

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        self._ensure_populated()
        result = {name: self._data.get(name) for name in self.FIELDS}
        result.update(self._extra)
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self._status.value})"


class Collection(Entity):
    """
    List of entities returned by the ``list*`` API methods.

    Each item is populated into a new instance of ``entity_type``.
    """

    FIELDS = ("items", "totalItemCount")

    def __init__(self, entity_type: Type[Entity] = Entity):
        super().__init__()
        self.entity_type = entity_type
        self._items: List[Entity] = []
        self._total_item_count: Optional[int] = None

    def parse(self, data: Any) -> Dict[str, Any]:
        """
        Validate collection data and build its items.

        The collection itself is left untouched; item entities are new
        instances of ``entity_type``.

        Raises:
            ArgumentError: If data or one of its items is not a mapping
            StateError: If items or totalItemCount are missing
        """
        data = _as_mapping(data)
        if data.get("items") is None:
            raise StateError("Cannot create collection - items are not available.")
        if data.get("totalItemCount") is None:
            raise StateError("Cannot create collection - total item count is not available.")
        if not isinstance(data["items"], (list, tuple)):
            raise ArgumentError("Collection items must be a list.")

        items = []
        for item in data["items"]:
            entity = self.entity_type()
            entity.populate(item)
            items.append(entity)
        return {"items": items, "totalItemCount": data["totalItemCount"]}

    def apply(self, data: Dict[str, Any]) -> None:
        self._items = list(data["items"])
        self._total_item_count = data["totalItemCount"]
        self._data = {"items": self._items, "totalItemCount": self._total_item_count}
        self._status = EntityStatus.POPULATED

    @property
    def items(self) -> List[Entity]:
        self._ensure_populated()
        return list(self._items)

    @property
    def total_item_count(self) -> int:
        self._ensure_populated()
        return self._total_item_count

    def __iter__(self) -> Iterator[Entity]:
        self._ensure_populated()
        return iter(self._items)

    def __len__(self) -> int:
        self._ensure_populated()
        return len(self._items)

    def __bool__(self) -> bool:
        return True

    def to_dict(self) -> dict:
        self._ensure_populated()
        return {
            "items": [item.to_dict() for item in self._items],
            "totalItemCount": self._total_item_count,
        }

    def __repr__(self) -> str:
        return (
            f"Collection(entity_type={self.entity_type.__name__}, "
            f"status={self._status.value})"
        )
