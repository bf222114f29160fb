"""JSON payload codec used by the cache and the request pipeline.

The codec is the serialisation capability that makes
:class:`~httpstash.cache.ObjectCache` and
:class:`~httpstash.client.APIClient` generic: callers name the type they
want (``list[User]``, a dataclass, ``dict[str, Any]``...) and the codec
validates the JSON against it with a pydantic :class:`~pydantic.TypeAdapter`.
ISO-8601 strings decode into ``datetime`` fields out of the box.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from httpstash.exceptions import DecodeError, EncodeError

T = TypeVar("T")


@lru_cache(maxsize=256)
def _cached_adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def _adapter(tp: Any) -> TypeAdapter[Any]:
    try:
        return _cached_adapter(tp)
    except TypeError:
        # Unhashable annotations (e.g. Annotated with dict metadata).
        return TypeAdapter(tp)


class JSONCodec:
    """Encode arbitrary values to JSON bytes and decode them into a target type.

    Args:
        indent: Indentation for encoded output. Cache files are written
            pretty-printed; pass ``None`` for compact request bodies.
    """

    def __init__(self, indent: int | None = 2) -> None:
        self._indent = indent

    def encode(self, value: Any) -> bytes:
        """Serialise *value* to JSON bytes.

        Pydantic models are written with their field aliases, the same keys
        :meth:`decode` expects, so a decoded value encodes back into JSON
        that validates as the same type.

        Raises:
            EncodeError: If the value is not JSON-serialisable.
        """
        try:
            return _adapter(Any).dump_json(value, indent=self._indent, by_alias=True)
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            raise EncodeError(f"Failed to encode {type(value).__name__}: {exc}") from exc

    def decode(self, data: bytes | str, response_type: type[T] | Any = Any) -> T:
        """Parse *data* as JSON and validate it against *response_type*.

        Raises:
            DecodeError: If *data* is not valid JSON or does not match
                *response_type*.
        """
        try:
            return _adapter(response_type).validate_json(data)
        except ValidationError as exc:
            raise DecodeError(f"Failed to decode response body: {exc}") from exc
