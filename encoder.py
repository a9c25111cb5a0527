"""
Base254 Encoder

Преобразует произвольные байты в буфер, где единственный нулевой байт -
завершающий. Нулевые байты заменяются маркером, а байты, совпадающие
с маркерами, записываются через escape-пару.
"""

from typing import Optional

from frequency import MarkerPair, analyze
from format import (Base254Header, HEADER_SIZE, TERMINATOR,
                    InvalidMarkerError, check_marker)


def worst_case_size(length: int) -> int:
    return HEADER_SIZE + length * 2 + 1


def encoded_size(data: bytes, markers: MarkerPair) -> int:
    required_size = HEADER_SIZE
    for byte in data:
        if byte == markers.null_replacement or byte == markers.escape_byte:
            required_size += 1
        required_size += 1
    return required_size + 1


class Base254Encoder:
    def __init__(self, null_replacement: Optional[int] = None,
                 escape_byte: Optional[int] = None):
        if (null_replacement is None) != (escape_byte is None):
            raise ValueError("null_replacement and escape_byte must be given together")

        self.markers: Optional[MarkerPair] = None
        if null_replacement is not None:
            self.markers = MarkerPair(
                check_marker('null_replacement', null_replacement),
                check_marker('escape_byte', escape_byte),
            )

    def choose_markers(self, data: bytes) -> MarkerPair:
        if self.markers is not None:
            return self.markers
        return analyze(data)

    def encode(self, data: bytes) -> bytes:
        return self.encode_with_markers(data, self.choose_markers(data))

    @staticmethod
    def encode_with_markers(data: bytes, markers: MarkerPair) -> bytes:
        check_marker('null_replacement', markers.null_replacement)
        check_marker('escape_byte', markers.escape_byte)
        if not markers.needs_escape and markers.null_replacement in data:
            raise InvalidMarkerError(
                f"Marker 0x{markers.null_replacement:02x} occurs in the data, "
                "so it cannot serve as both null replacement and escape byte")

        required_size = encoded_size(data, markers)
        encoded = bytearray(required_size)
        encoded[:HEADER_SIZE] = Base254Header(markers).serialize()

        null_replacement = markers.null_replacement
        escape_byte = markers.escape_byte

        k = HEADER_SIZE
        for byte in data:
            if byte == 0:
                encoded[k] = null_replacement
                k += 1
            elif byte == null_replacement or byte == escape_byte:
                encoded[k] = escape_byte
                encoded[k + 1] = byte
                k += 2
            else:
                encoded[k] = byte
                k += 1

        assert k == required_size - 1
        encoded[k] = TERMINATOR

        return bytes(encoded)


def encode(data: bytes) -> bytes:
    return Base254Encoder().encode(data)


def encode_with_markers(data: bytes, null_replacement: int, escape_byte: int) -> bytes:
    markers = MarkerPair(
        check_marker('null_replacement', null_replacement),
        check_marker('escape_byte', escape_byte),
    )
    return Base254Encoder.encode_with_markers(data, markers)


class EncodingStats:
    def __init__(self, data: bytes, markers: MarkerPair):
        self.markers = markers
        self.original_size = len(data)

        self.null_count = sum(1 for b in data if b == 0)
        self.escape_count = sum(
            1 for b in data
            if b != 0 and (b == markers.null_replacement or b == markers.escape_byte)
        )

        self.encoded_size = HEADER_SIZE + self.original_size + self.escape_count + 1

        self.overhead = (
            (self.encoded_size - self.original_size) / self.original_size * 100
            if self.original_size > 0 else 0
        )

    def print_stats(self):
        mode = "escaping" if self.markers.needs_escape else "no escaping"
        print("Base254 Encoding Statistics:")
        print(f"  Original size:       {self.original_size} bytes")
        print(f"  Encoded size:        {self.encoded_size} bytes")
        print(f"  Null replacement:    0x{self.markers.null_replacement:02x}")
        print(f"  Escape byte:         0x{self.markers.escape_byte:02x} ({mode})")
        print(f"  Zero bytes replaced: {self.null_count}")
        print(f"  Escape pairs:        {self.escape_count}")
        print(f"  Overhead:            {self.overhead:.2f}%")
