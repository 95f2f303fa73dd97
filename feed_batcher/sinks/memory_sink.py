import json
from typing import Any, List


class MemorySink:
    """Держит все полученные батчи в памяти (для тестов и dry-run)."""

    def __init__(self) -> None:
        self.payloads: List[bytes] = []

    def call(self, payload: bytes) -> None:
        self.payloads.append(payload)

    @property
    def batches(self) -> List[List[Any]]:
        """
        Декодированные батчи в порядке отправки.

        :return: Список батчей (каждый — список записей).
        """
        return [json.loads(p.decode("utf-8")) for p in self.payloads]

    @property
    def records(self) -> List[Any]:
        """Все записи из всех батчей подряд."""
        return [r for batch in self.batches for r in batch]
