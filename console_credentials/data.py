import base64
from typing import Any, Optional
from collections.abc import Iterator, Mapping, MutableMapping
import orjson
from pydantic import BaseModel, SecretBytes, SecretStr
from .exceptions import RecordNotFound

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"


def _reveal(value: Any, dumped: Any) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    if isinstance(value, SecretBytes):
        raise TypeError("SecretBytes fields cannot be stored as record text")
    if isinstance(value, BaseModel):
        return reveal_secrets(value)
    if isinstance(value, (list, tuple)) and isinstance(dumped, list):
        return [_reveal(v, d) for v, d in zip(value, dumped)]
    if isinstance(value, dict) and isinstance(dumped, dict):
        return {
            k: _reveal(value[k], d) if k in value else d
            for k, d in dumped.items()
        }
    return dumped


def reveal_secrets(model: BaseModel) -> dict[str, Any]:
    """Dump a pydantic model to JSON-ready data with secret values revealed.

    ``model_dump`` masks ``SecretStr`` fields, which would store the mask
    instead of the secret.
    """
    dumped = model.model_dump(mode="json")
    return {
        name: _reveal(getattr(model, name), value)
        for name, value in dumped.items()
    }


def serialize_value(value: Any) -> str:
    """Serialize a Python value to JSON text for storage as a record.

    Supports: str, int, float, dict, list, bytes, bool, None, datetime,
    dataclasses, pydantic models and credential records.
    bytes values are wrapped as {"__vault_bytes_b64__": "<base64>"} for safe
    JSON round-trip.

    Args:
        value: Python value to serialize.

    Returns:
        JSON text.
    """
    if hasattr(value, "to_payload"):
        value = value.to_payload()
    elif isinstance(value, BaseModel):
        value = reveal_secrets(value)
    elif isinstance(value, bytes):
        value = {_BYTES_WRAPPER_KEY: base64.b64encode(value).decode("ascii")}
    return orjson.dumps(value).decode("utf-8")


def deserialize_value(data: str, model: Optional[type] = None) -> Any:
    """Deserialize JSON text back to a Python value.

    The store does not remember what type a record had; pass *model* (a
    pydantic model class) to get that type back.

    Args:
        data: JSON text from serialize_value.
        model: Optional pydantic model used to validate the payload.

    Returns:
        Original Python value, or an instance of *model*.
    """
    parsed = orjson.loads(data)
    if isinstance(parsed, dict) and _BYTES_WRAPPER_KEY in parsed and len(parsed) == 1:
        parsed = base64.b64decode(parsed[_BYTES_WRAPPER_KEY])
    if model is not None:
        return model.model_validate(parsed)
    return parsed


class RecordDict(MutableMapping[str, str]):
    """Plaintext record set of one partition.

    Maps record name to its serialized (JSON text) value. Values are kept
    opaque; ``encode``/``decode`` convert to and from Python objects.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, str]] = None,
        new: bool = False
    ) -> None:
        self._data: dict[str, str] = {}
        # a new record set has never been written, mark it as changed
        self._changed = bool(new)
        if data is not None:
            for name, value in data.items():
                self._check(name, value)
                self._data[name] = value

    def __repr__(self) -> str:
        # values may hold secrets, never show them
        return (
            f'<RecordDict [changed:{self.is_changed}] '
            f'names={sorted(self._data)}>'
        )

    @staticmethod
    def _check(name: Any, value: Any) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("Record name must be a non-empty string")
        if not isinstance(value, str):
            raise TypeError(
                f"Record {name!r} must hold serialized text, "
                f"got {type(value).__name__}"
            )

    # --- Properties ---

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        self._changed = value

    def names(self) -> list[str]:
        return list(self._data)

    def to_dict(self) -> dict[str, str]:
        """Return a copy of the serialized records (for encryption)."""
        return dict(self._data)

    def invalidate(self) -> None:
        """Clear all records."""
        self._changed = True
        self._data = {}

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __getitem__(self, name: str) -> str:
        try:
            return self._data[name]
        except KeyError:
            raise RecordNotFound(name) from None

    def __setitem__(self, name: str, value: str) -> None:
        self._check(name, value)
        self._data[name] = value
        self._changed = True

    def __delitem__(self, name: str) -> None:
        try:
            del self._data[name]
        except KeyError:
            raise RecordNotFound(name) from None
        self._changed = True

    def encode(self, name: str, obj: Any) -> None:
        """encode

            Serialize an object and store it under a record name.
        Args:
            name (str): record name.
            obj (Any): Object to be serialized with serialize_value.
        """
        self[name] = serialize_value(obj)

    def decode(self, name: str, model: Optional[type] = None) -> Any:
        """decode.

            Deserialize a stored record.
        Args:
            name (str): record name.
            model (type): optional pydantic model to validate into.

        Raises:
            RecordNotFound: the record name is missing.

        Returns:
            Any: object converted.
        """
        return deserialize_value(self[name], model=model)
