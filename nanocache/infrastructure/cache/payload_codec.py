"""Payload serialization for cache records.

A serializer turns the caller's value into bytes; the payload codec then
applies the store-wide text transform so the result can sit inside the JSON
envelope:

- base64 on: standard base64, ASCII only.
- base64 off: the bytes decoded as UTF-8, with undecodable bytes kept as
  surrogate escapes (JSON writes them as ``\\udcXX``), so any serializer
  output survives the round trip.

The envelope does not record which transform was used. Reading a file with
the other setting fails to decode and surfaces as a ValueError.
"""

import base64
import binascii
import json
import logging
import pickle
from typing import Any, Dict, Optional, Type

# Domain Layer Imports
from nanocache.domain.interfaces.codec import PayloadSerializer
from nanocache.domain.models.common import EncodedPayload

logger = logging.getLogger(__name__)

class JsonSerializer(PayloadSerializer):
    """Serializes JSON-compatible values (dicts, lists, str, numbers, bools, None)."""

    name = "json"

    def dumps(self, value: Any) -> bytes:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    def loads(self, raw: bytes) -> Any:
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid JSON payload: {e}") from e


class PickleSerializer(PayloadSerializer):
    """Serializes arbitrary Python objects with pickle.

    Only load cache files you wrote yourself; unpickling runs code.
    """

    name = "pickle"

    def dumps(self, value: Any) -> bytes:
        try:
            return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, AttributeError) as e:
            raise TypeError(f"Value cannot be pickled: {e}") from e

    def loads(self, raw: bytes) -> Any:
        try:
            return pickle.loads(raw)
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError) as e:
            raise ValueError(f"Invalid pickle payload: {e}") from e


SERIALIZERS: Dict[str, Type[PayloadSerializer]] = {
    JsonSerializer.name: JsonSerializer,
    PickleSerializer.name: PickleSerializer,
}

def get_serializer(name: str) -> PayloadSerializer:
    """Looks up a serializer by its configuration name."""
    try:
        return SERIALIZERS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown payload serializer '{name}'. Choose one of: {', '.join(sorted(SERIALIZERS))}"
        ) from None


class PayloadCodec:
    """Serializer plus the store-wide base64 text transform."""

    def __init__(self, serializer: Optional[PayloadSerializer] = None, base64_enabled: bool = True):
        self.serializer = serializer or JsonSerializer()
        self.base64_enabled = base64_enabled

    def encode(self, value: Any) -> EncodedPayload:
        raw = self.serializer.dumps(value)
        if self.base64_enabled:
            return EncodedPayload(base64.b64encode(raw).decode("ascii"))
        return EncodedPayload(raw.decode("utf-8", errors="surrogateescape"))

    def decode(self, payload: EncodedPayload) -> Any:
        if self.base64_enabled:
            try:
                raw = base64.b64decode(payload.encode("ascii"), validate=True)
            except (UnicodeEncodeError, binascii.Error) as e:
                logger.warning(f"Payload is not valid base64; was it written with base64 disabled? ({e})")
                raise ValueError(f"Invalid base64 payload: {e}") from e
        else:
            try:
                raw = payload.encode("utf-8", errors="surrogateescape")
            except UnicodeEncodeError as e:
                raise ValueError(f"Invalid text payload: {e}") from e
        return self.serializer.loads(raw)
