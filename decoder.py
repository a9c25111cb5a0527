"""
Base254 Decoder

Читает заголовок, затем проходит по данным автоматом с двумя состояниями
до завершающего нуля или до границы сканирования.
"""

from typing import Optional

from format import (Base254Header, DecodedResult, HEADER_SIZE, TERMINATOR,
                    TruncatedInputError)


class ScanState:
    NORMAL = 0
    ESCAPED = 1


class Base254Decoder:
    def __init__(self, buffer: bytes, limit: Optional[int] = None):
        if limit is not None and limit < 0:
            raise ValueError(f"Scan limit must not be negative: {limit}")
        if limit == 0:
            limit = None

        if limit is not None and limit < HEADER_SIZE:
            raise TruncatedInputError(
                f"Scan limit {limit} is too short to contain a base254 header")

        self.buffer = bytes(buffer)
        self.limit = limit
        self.end = len(self.buffer) if limit is None else min(limit, len(self.buffer))
        self.header = Base254Header.deserialize(self.buffer[:self.end])

    def _payload_end(self) -> int:
        """Индекс завершающего нуля или конца окна, если граница исчерпана раньше."""
        terminator = self.buffer.find(TERMINATOR, HEADER_SIZE, self.end)
        if terminator != -1:
            return terminator

        if self.limit is None:
            raise TruncatedInputError("No terminator found in base254 buffer")
        if self.limit > len(self.buffer):
            raise TruncatedInputError(
                f"Buffer ended after {len(self.buffer)} bytes, before the terminator "
                f"or the scan limit of {self.limit}")
        return self.end

    def decode(self) -> DecodedResult:
        payload_end = self._payload_end()

        null_replacement = self.header.null_replacement
        escape_byte = self.header.escape_byte
        escaping = self.header.markers.needs_escape

        output = bytearray(payload_end - HEADER_SIZE)
        state = ScanState.NORMAL
        k = 0

        for i in range(HEADER_SIZE, payload_end):
            byte = self.buffer[i]

            if state == ScanState.ESCAPED:
                output[k] = byte
                k += 1
                state = ScanState.NORMAL
            elif escaping and byte == escape_byte:
                state = ScanState.ESCAPED
            elif byte == null_replacement:
                output[k] = 0
                k += 1
            else:
                output[k] = byte
                k += 1

        if state != ScanState.NORMAL:
            raise TruncatedInputError("Base254 payload ends inside an escape pair")

        del output[k:]
        return DecodedResult(bytes(output), k)


def decode(buffer: bytes) -> DecodedResult:
    return decode_bounded(buffer, None)


def decode_bounded(buffer: bytes, limit: Optional[int]) -> DecodedResult:
    return Base254Decoder(buffer, limit).decode()


def release(result: DecodedResult):
    result.release()
