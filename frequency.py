"""
Частотный анализ байтов для выбора маркеров base254.

Заменитель нуля - наименее используемый байт из 1..255, escape-байт -
второй по редкости. Если заменитель нуля не встречается в данных,
escape-байт совпадает с ним, и декодер не интерпретирует его как escape.
"""

from typing import List
from dataclasses import dataclass
from collections import Counter


@dataclass(frozen=True)
class MarkerPair:
    null_replacement: int
    escape_byte: int

    @property
    def needs_escape(self) -> bool:
        return self.escape_byte != self.null_replacement


def build_histogram(data: bytes) -> List[int]:
    counts = Counter(data)
    return [counts.get(value, 0) for value in range(256)]


def _least_used(histogram: List[int], skip: int = 0) -> int:
    # 0 - завершающий байт, он не может быть маркером
    min_use = None
    least = 1
    for value in range(1, 256):
        if value == skip:
            continue
        if min_use is None or histogram[value] < min_use:
            min_use = histogram[value]
            least = value
    return least


def select_markers(histogram: List[int]) -> MarkerPair:
    if len(histogram) != 256:
        raise ValueError(f"Histogram must have 256 entries, got {len(histogram)}")

    null_replacement = _least_used(histogram)
    if histogram[null_replacement] == 0:
        return MarkerPair(null_replacement, null_replacement)

    escape_byte = _least_used(histogram, skip=null_replacement)
    return MarkerPair(null_replacement, escape_byte)


def analyze(data: bytes) -> MarkerPair:
    return select_markers(build_histogram(data))
