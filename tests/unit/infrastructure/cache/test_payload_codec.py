import base64
import json
from datetime import date

import pytest

from nanocache.infrastructure.cache.payload_codec import (
    JsonSerializer,
    PayloadCodec,
    PickleSerializer,
    get_serializer,
)

def test_base64_json_payload_is_ascii_and_decodes():
    codec = PayloadCodec(JsonSerializer(), base64_enabled=True)
    value = {"name": "Ada", "langs": ["en", "fr"], "score": 9.5}

    encoded = codec.encode(value)

    assert encoded.isascii()
    assert json.loads(base64.b64decode(encoded)) == value
    assert codec.decode(encoded) == value

def test_plain_json_payload_is_readable_text():
    codec = PayloadCodec(JsonSerializer(), base64_enabled=False)

    encoded = codec.encode({"city": "Zürich"})

    assert encoded == '{"city":"Zürich"}'
    assert codec.decode(encoded) == {"city": "Zürich"}

def test_plain_pickle_payload_survives_json_envelope():
    """Binary serializer output without base64 must still round-trip through the JSON file."""
    codec = PayloadCodec(PickleSerializer(), base64_enabled=False)
    value = {"when": date(2024, 1, 31), "raw": b"\x00\xff\x80"}

    encoded = codec.encode(value)
    through_file = json.loads(json.dumps(encoded, ensure_ascii=True))

    assert codec.decode(through_file) == value

def test_switching_base64_off_makes_old_payloads_unreadable():
    written = PayloadCodec(JsonSerializer(), base64_enabled=True).encode({"a": 1})
    reader = PayloadCodec(JsonSerializer(), base64_enabled=False)

    with pytest.raises(ValueError):
        reader.decode(written)

def test_switching_base64_on_rejects_plain_payloads():
    written = PayloadCodec(JsonSerializer(), base64_enabled=False).encode({"a": 1})
    reader = PayloadCodec(JsonSerializer(), base64_enabled=True)

    with pytest.raises(ValueError):
        reader.decode(written)

def test_json_serializer_rejects_unserializable_values():
    with pytest.raises(TypeError):
        PayloadCodec(JsonSerializer()).encode({"when": date(2024, 1, 1)})

def test_get_serializer_by_name():
    assert isinstance(get_serializer("json"), JsonSerializer)
    assert isinstance(get_serializer("PICKLE"), PickleSerializer)
    with pytest.raises(ValueError, match="Unknown payload serializer"):
        get_serializer("msgpack")
