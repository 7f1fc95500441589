"""
Credential Records — statically declared record types and a builder.

Every record type declares its fields up front; a field is secret when it is
annotated ``SecretStr`` or marked with ``json_schema_extra={"secret": True}``.
An interactive front end walks ``record_fields()`` (masking secret input) and
feeds the answers to a ``RecordBuilder``; the store itself only ever sees the
serialized payload.
"""
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .data import reveal_secrets


class RecordField(NamedTuple):
    name: str
    secret: bool
    required: bool


def _is_secret(info: Any) -> bool:
    if info.annotation is SecretStr or info.annotation == Optional[SecretStr]:
        return True
    extra = info.json_schema_extra
    return isinstance(extra, dict) and bool(extra.get("secret"))


class CredentialRecord(BaseModel):
    """Base class for a named credential.

    ``name`` identifies the record inside the store; every other field is
    part of the credential itself.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)

    @classmethod
    def record_fields(cls) -> list[RecordField]:
        """Fields a caller has to supply, in declaration order."""
        return [
            RecordField(field_name, _is_secret(info), info.is_required())
            for field_name, info in cls.model_fields.items()
            if field_name != "name"
        ]

    @classmethod
    def secret_fields(cls) -> list[str]:
        return [f.name for f in cls.record_fields() if f.secret]

    def to_payload(self) -> dict[str, Any]:
        """Return JSON-ready data with secret values revealed for storage."""
        return reveal_secrets(self)


class UsernamePassword(CredentialRecord):
    username: str
    password: SecretStr


class ApiToken(CredentialRecord):
    token: SecretStr
    endpoint: Optional[str] = None


class ConnectionString(CredentialRecord):
    dsn: str = Field(json_schema_extra={"secret": True})


class RecordBuilder:
    """Collect field values for one record type, then build the record.

    Args:
        record_cls: A ``CredentialRecord`` subclass.
    """

    def __init__(self, record_cls: type[CredentialRecord]) -> None:
        if not (isinstance(record_cls, type) and issubclass(record_cls, CredentialRecord)):
            raise TypeError(f"{record_cls!r} is not a CredentialRecord type")
        self.record_cls = record_cls
        self._values: dict[str, Any] = {}

    @property
    def fields(self) -> list[RecordField]:
        return self.record_cls.record_fields()

    def pending(self) -> list[RecordField]:
        """Fields not supplied yet."""
        return [f for f in self.fields if f.name not in self._values]

    def set(self, field_name: str, value: Any) -> "RecordBuilder":
        if field_name not in {f.name for f in self.fields}:
            raise KeyError(
                f"{self.record_cls.__name__} has no field {field_name!r}"
            )
        self._values[field_name] = value
        return self

    def build(self, name: str) -> CredentialRecord:
        """Validate the collected values into a record.

        Raises:
            pydantic.ValidationError: If a required field is missing or a
                value does not validate.
        """
        return self.record_cls.model_validate({"name": name, **self._values})
