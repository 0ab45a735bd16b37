"""
Data model for the submission pipeline.

Records flow through the system as:
- JobRequest: a validated client submission
- DurableRecord: one row in the durable log per accepted request
- CacheEntry: the pending marker or computed result for an index
- DispatchMessage: the transient "new index submitted" notification
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .errors import MessageDecodeError, ValidationError

MAX_INDEX = 40
PENDING = "Nothing yet!"
INSERT_CHANNEL = "insert"


def _coerce_index(raw: Any) -> int:
    """Turn a raw payload value into an int, rejecting anything ambiguous."""
    if raw is None:
        raise ValidationError("Index is required", raw)

    # bool is an int subclass; True must not become index 1
    if isinstance(raw, bool):
        raise ValidationError("Index must be an integer", raw)

    if isinstance(raw, int):
        return raw

    if isinstance(raw, (str, bytes)):
        text = raw.decode() if isinstance(raw, bytes) else raw
        text = text.strip()
        if not text:
            raise ValidationError("Index is required", raw)
        # Plain ASCII digits only; int() would also take "+7", "4_0" and
        # non-ASCII digits. A leading "-" is kept so the sign check reports it.
        digits = text[1:] if text.startswith("-") else text
        if not (digits.isascii() and digits.isdigit()):
            raise ValidationError("Index must be an integer", raw)
        return int(text)

    raise ValidationError("Index must be an integer", raw)


@dataclass(frozen=True)
class JobRequest:
    """An accepted request to compute the value at ``index``."""
    index: int

    @classmethod
    def parse(cls, raw: Any, max_index: int = MAX_INDEX) -> "JobRequest":
        """
        Validate a raw index value from a client.

        Accepts ints and decimal strings. Raises ValidationError for missing,
        non-numeric, negative or too-large values.
        """
        index = _coerce_index(raw)
        if index < 0:
            raise ValidationError("Index must not be negative", raw)
        if index > max_index:
            raise ValidationError("Index too high", raw)
        return cls(index=index)

    @property
    def key(self) -> str:
        return str(self.index)


@dataclass(frozen=True)
class DurableRecord:
    """A row of the durable log."""
    number: int

    def to_dict(self) -> Dict[str, Any]:
        return {"number": self.number}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DurableRecord":
        return cls(number=int(data["number"]))


@dataclass(frozen=True)
class CacheEntry:
    """A single result cache entry."""
    key: str
    value: str

    @property
    def is_pending(self) -> bool:
        return self.value == PENDING

    @property
    def index(self) -> int:
        return int(self.key)

    @property
    def result(self) -> Optional[int]:
        if self.is_pending:
            return None
        return int(self.value)

    @classmethod
    def from_item(cls, key: Union[str, bytes], value: Union[str, bytes]) -> "CacheEntry":
        if isinstance(key, bytes):
            key = key.decode()
        if isinstance(value, bytes):
            value = value.decode()
        return cls(key=key, value=value)


@dataclass(frozen=True)
class DispatchMessage:
    """Notification that ``payload`` was submitted and needs computing."""
    payload: int
    channel: str = INSERT_CHANNEL

    def to_wire(self) -> str:
        # The bare index keeps the channel readable by any subscriber.
        return str(self.payload)

    @classmethod
    def from_wire(
        cls,
        channel: str,
        data: Union[str, bytes, int],
    ) -> "DispatchMessage":
        if isinstance(data, bytes):
            data = data.decode()
        try:
            payload = int(data)
        except (TypeError, ValueError):
            raise MessageDecodeError(f"Invalid dispatch payload: {data!r}") from None
        return cls(payload=payload, channel=channel)
