"""
Определяет структуру буфера base254 и ошибки при его чтении.

'b' | 254 | <null replacement> | <escape byte> | <payload> | 0
"""

import io
import struct
from typing import Optional

from frequency import MarkerPair


MAGIC = b'b\xfe'
HEADER_SIZE = 4
TERMINATOR = 0
DEFAULT_EXTENSION = '.b254'


class Base254Error(ValueError):
    pass


class MalformedHeaderError(Base254Error):
    pass


class TruncatedInputError(Base254Error):
    pass


class InvalidMarkerError(Base254Error):
    pass


def check_marker(name: str, value: int) -> int:
    if not isinstance(value, int) or not 1 <= value <= 255:
        raise InvalidMarkerError(f"{name} must be in range 1..255, got {value!r}")
    return value


class Base254Header:
    def __init__(self, markers: MarkerPair):
        self.magic = MAGIC
        self.markers = markers

    @property
    def null_replacement(self) -> int:
        return self.markers.null_replacement

    @property
    def escape_byte(self) -> int:
        return self.markers.escape_byte

    def serialize(self) -> bytes:
        output = io.BytesIO()
        output.write(self.magic)
        output.write(struct.pack('BB', self.null_replacement, self.escape_byte))
        return output.getvalue()

    @staticmethod
    def deserialize(data: bytes) -> 'Base254Header':
        if len(data) < len(MAGIC):
            raise TruncatedInputError("Buffer too short to hold a base254 header")

        if bytes(data[:len(MAGIC)]) != MAGIC:
            raise MalformedHeaderError("Not properly formatted base254 data")

        if len(data) < HEADER_SIZE:
            raise TruncatedInputError("Buffer too short to hold a base254 header")

        null_replacement, escape_byte = struct.unpack_from('BB', data, len(MAGIC))
        if null_replacement == TERMINATOR or escape_byte == TERMINATOR:
            raise MalformedHeaderError("Marker bytes in base254 header must not be zero")

        return Base254Header(MarkerPair(null_replacement, escape_byte))

    def __repr__(self):
        return (f"Base254Header(null_replacement=0x{self.null_replacement:02x}, "
                f"escape_byte=0x{self.escape_byte:02x})")


class DecodedResult:
    """
    Декодированные байты с явной длиной.

    Данные могут содержать нулевые байты, поэтому длина хранится в `size`.
    Результат освобождается ровно один раз: через release() или при выходе
    из блока `with`. После этого данные недоступны.
    """

    def __init__(self, data: bytes, size: int):
        self._data: Optional[bytes] = data
        self.size = size

    def __repr__(self):
        state = "released" if self.released else "held"
        return f"DecodedResult(size={self.size}, {state})"

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise ValueError("DecodedResult has already been released")
        return self._data

    def release(self):
        if self._data is None:
            raise ValueError("DecodedResult has already been released")
        self._data = None
        self.size = 0

    def __enter__(self) -> 'DecodedResult':
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self.released:
            self.release()
        return False
