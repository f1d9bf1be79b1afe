"""Resource schema primitives: field declarations, per-instance state, and the resource bundle."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

# Zero values per field type, mirroring what an unset attribute reads as
_ZERO_VALUES = {int: 0, str: ""}


class SchemaError(Exception):
    """Raised when a value does not fit the declared field type."""


class ResourceError(Exception):
    """Raised when a resource lifecycle operation fails."""


@dataclass
class FieldSchema:
    """Declaration of one resource attribute."""

    type: type
    required: bool = False
    validate: Optional[Callable[[Any], None]] = None

    @property
    def zero(self) -> Any:
        return _ZERO_VALUES[self.type]

    def coerce(self, value: Any) -> Any:
        """Convert ``value`` to the field type or raise SchemaError."""
        if value is None:
            return self.zero
        if self.type is int:
            if isinstance(value, bool):
                raise SchemaError(f"expected int, got bool {value!r}")
            if isinstance(value, int):
                return value
            if isinstance(value, float) and value.is_integer():
                return int(value)
            raise SchemaError(f"expected int, got {type(value).__name__} {value!r}")
        if self.type is str:
            if isinstance(value, str):
                return value
            raise SchemaError(f"expected string, got {type(value).__name__} {value!r}")
        raise SchemaError(f"unsupported field type {self.type!r}")


def string_len_between(lo: int, hi: int) -> Callable[[Any], None]:
    """Validator: string length must be within [lo, hi]."""

    def _validate(value: Any) -> None:
        if not isinstance(value, str):
            raise ValueError(f"expected type to be string, got {type(value).__name__}")
        if not lo <= len(value) <= hi:
            raise ValueError(
                f"expected length to be in the range ({lo} - {hi}), got {value!r}"
            )

    return _validate


def int_between(lo: int, hi: int) -> Callable[[Any], None]:
    """Validator: integer must be within [lo, hi]."""

    def _validate(value: Any) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"expected type to be integer, got {type(value).__name__}")
        if not lo <= value <= hi:
            raise ValueError(f"expected to be in the range ({lo} - {hi}), got {value}")

    return _validate


class ResourceData:
    """
    State of one resource instance as seen by the lifecycle callbacks.

    ``id`` is the management key of the object on the device. An empty id
    means the object does not exist and the instance should be dropped from
    local state.
    """

    def __init__(
        self,
        schema: Dict[str, FieldSchema],
        id: str = "",
        attributes: Optional[Dict[str, Any]] = None,
    ):
        self.schema = schema
        self._id = id
        self._attributes: Dict[str, Any] = {}
        for key, value in (attributes or {}).items():
            self.set(key, value)

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, value: str) -> None:
        self._id = value

    def _field(self, key: str) -> FieldSchema:
        try:
            return self.schema[key]
        except KeyError:
            raise SchemaError(f"unknown attribute {key!r}") from None

    def get(self, key: str) -> Any:
        """Return the attribute value, or the zero value of its type when unset."""
        spec = self._field(key)
        return self._attributes.get(key, spec.zero)

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        """Return ``(value, ok)`` where ok is False for unset or zero values."""
        spec = self._field(key)
        value = self._attributes.get(key, spec.zero)
        return value, value != spec.zero

    def set(self, key: str, value: Any) -> None:
        spec = self._field(key)
        self._attributes[key] = spec.coerce(value)

    def validate(self) -> List[str]:
        """Return a list of problems with the current attribute values."""
        problems = []
        for key, spec in self.schema.items():
            if key not in self._attributes:
                if spec.required:
                    problems.append(f"{key}: required field is not set")
                continue
            if spec.validate is not None:
                try:
                    spec.validate(self._attributes[key])
                except ValueError as e:
                    problems.append(f"{key}: {e}")
        return problems

    def attributes(self) -> Dict[str, Any]:
        return {key: self.get(key) for key in self.schema}

    def state(self) -> Dict[str, Any]:
        return {"id": self.id, **self.attributes()}

    def __repr__(self):
        return f"<ResourceData(id={self.id!r}, attributes={self._attributes!r})>"


Operation = Callable[[ResourceData, Any], Awaitable[None]]


async def import_state_passthrough(d: ResourceData, client: Any) -> List[ResourceData]:
    """Importer that takes the import id verbatim as the management key."""
    return [d]


@dataclass
class Resource:
    """A resource type: its schema plus lifecycle callbacks."""

    name: str
    schema: Dict[str, FieldSchema]
    create: Operation
    read: Operation
    update: Operation
    delete: Operation
    importer: Callable[[ResourceData, Any], Awaitable[List[ResourceData]]] = import_state_passthrough
    description: str = ""

    def data(self, id: str = "", attributes: Optional[Dict[str, Any]] = None) -> ResourceData:
        """Build a fresh ResourceData bound to this resource's schema."""
        return ResourceData(self.schema, id=id, attributes=attributes)
