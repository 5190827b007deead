"""Interface for payload serialization.

The cache treats caller values as opaque. A serializer turns them into
bytes and back; the store-wide text transform (base64 or plain) is applied
on top of it by the payload codec.
"""

import abc
from typing import Any

class PayloadSerializer(abc.ABC):
    """Abstract Base Class for turning caller values into bytes."""

    #: Short name used in configuration ('json', 'pickle').
    name: str = ""

    @abc.abstractmethod
    def dumps(self, value: Any) -> bytes:
        """Serializes a value.

        Raises:
            TypeError, ValueError: If the value cannot be serialized.
        """
        pass

    @abc.abstractmethod
    def loads(self, raw: bytes) -> Any:
        """Deserializes bytes previously produced by dumps.

        Raises:
            ValueError: If the bytes are not valid for this serializer.
        """
        pass
