"""
Кодирование и декодирование целых файлов в формате base254.
"""

import os
from pathlib import Path
from typing import Optional

from encoder import Base254Encoder, EncodingStats
from decoder import decode_bounded
from format import Base254Header, DEFAULT_EXTENSION


class Envelope:
    def __init__(self, verify: bool = True,
                 null_replacement: Optional[int] = None,
                 escape_byte: Optional[int] = None):
        self.verify = verify
        self.encoder = Base254Encoder(null_replacement, escape_byte)

    @staticmethod
    def _read(path: str) -> bytes:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"File not found: {path}")

        with open(path, 'rb') as f:
            return f.read()

    @staticmethod
    def _write(path: str, data: bytes):
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        with open(path, 'wb') as f:
            f.write(data)

    @staticmethod
    def default_output(path: str, decoding: bool = False) -> str:
        p = Path(path)
        if decoding:
            return str(p.with_suffix('')) if p.suffix == DEFAULT_EXTENSION else str(p) + '.out'
        return str(p) + DEFAULT_EXTENSION

    def encode_file(self, path: str, output_path: Optional[str] = None) -> EncodingStats:
        data = self._read(path)
        output_path = output_path or self.default_output(path)

        markers = self.encoder.choose_markers(data)
        encoded = self.encoder.encode_with_markers(data, markers)

        if self.verify:
            with decode_bounded(encoded, None) as result:
                if result.size != len(data) or result.data != data:
                    raise ValueError(f"Round-trip check failed for {path}")

        self._write(output_path, encoded)

        stats = EncodingStats(data, markers)
        print(f"Encoded {path} -> {output_path} "
              f"({stats.original_size} -> {stats.encoded_size} bytes, +{stats.overhead:.2f}%)")
        return stats

    def decode_file(self, path: str, output_path: Optional[str] = None,
                    limit: Optional[int] = None) -> int:
        buffer = self._read(path)
        output_path = output_path or self.default_output(path, decoding=True)

        with decode_bounded(buffer, limit) as result:
            size = result.size
            self._write(output_path, result.data)

        print(f"Decoded {path} -> {output_path} ({size} bytes)")
        return size

    def inspect_file(self, path: str) -> Base254Header:
        buffer = self._read(path)
        header = Base254Header.deserialize(buffer)

        with decode_bounded(buffer, None) as result:
            stats = EncodingStats(result.data, header.markers)

        print(f"{'File':<20} {path}")
        print("-" * 60)
        print(f"{'Null replacement':<20} 0x{header.null_replacement:02x}")
        mode = "escaping" if header.markers.needs_escape else "none (sentinel)"
        print(f"{'Escape byte':<20} 0x{header.escape_byte:02x} [{mode}]")
        print(f"{'Encoded size':<20} {len(buffer)} bytes")
        print(f"{'Decoded size':<20} {stats.original_size} bytes")
        print(f"{'Zero bytes':<20} {stats.null_count}")
        print(f"{'Escape pairs':<20} {stats.escape_count}")
        print(f"{'Overhead':<20} {stats.overhead:.2f}%")
        return header
