import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from feed_batcher.pipeline.sizing import ONE_MEGABYTE

# Батч считается "полным", если занимает больше 95% лимита
FULL_BATCH_RATIO = 0.95


@dataclass(frozen=True)
class RunSummary:
    """
    Итоговая сводка по отправленным батчам.

    Поля partial_* и средние значения вычисляются из итоговых счётчиков,
    отдельно они не накапливаются.

    :param max_size_bytes: Лимит размера батча в байтах.
    :param total_records: Сколько записей отправлено.
    :param total_batches: Сколько батчей отправлено.
    :param total_bytes: Суммарный размер отправленных батчей.
    :param full_batch_count: Сколько батчей было "полными" (> 95% лимита).
    :param full_batch_bytes: Суммарный размер "полных" батчей.
    """

    max_size_bytes: float
    total_records: int
    total_batches: int
    total_bytes: int
    full_batch_count: int
    full_batch_bytes: int

    @property
    def partial_batch_count(self) -> int:
        return self.total_batches - self.full_batch_count

    @property
    def partial_batch_bytes(self) -> int:
        return self.total_bytes - self.full_batch_bytes

    @property
    def avg_batch_bytes(self) -> Optional[float]:
        if self.total_batches == 0:
            return None
        return self.total_bytes / self.total_batches

    @property
    def avg_records_per_batch(self) -> Optional[int]:
        """Среднее число записей в батче, округлённое (0.5 — вверх)."""
        if self.total_batches == 0:
            return None
        return int(math.floor(self.total_records / self.total_batches + 0.5))

    @property
    def utilization_pct(self) -> Optional[float]:
        avg = self.avg_batch_bytes
        if avg is None:
            return None
        return avg / self.max_size_bytes * 100

    @property
    def full_avg_bytes(self) -> Optional[float]:
        if self.full_batch_count == 0:
            return None
        return self.full_batch_bytes / self.full_batch_count

    @property
    def full_utilization_pct(self) -> Optional[float]:
        avg = self.full_avg_bytes
        if avg is None:
            return None
        return avg / self.max_size_bytes * 100

    def as_dict(self) -> Dict[str, int | float | None]:
        """
        Преобразует сводку в словарь (вместе с вычисляемыми значениями).

        :return: Словарь со счётчиками и производными метриками.
        """
        return {
            "max_size_bytes": self.max_size_bytes,
            "total_records": self.total_records,
            "total_batches": self.total_batches,
            "total_bytes": self.total_bytes,
            "full_batch_count": self.full_batch_count,
            "full_batch_bytes": self.full_batch_bytes,
            "partial_batch_count": self.partial_batch_count,
            "partial_batch_bytes": self.partial_batch_bytes,
            "avg_batch_bytes": self.avg_batch_bytes,
            "avg_records_per_batch": self.avg_records_per_batch,
            "utilization_pct": self.utilization_pct,
        }

    def report_lines(self) -> List[str]:
        """
        Формирует текстовый отчёт для лога.

        При нуле отправленных батчей деления не выполняются,
        в отчёте явно пишется, что батчей не было.

        :return: Список строк отчёта.
        """
        lines = [
            "=" * 60,
            "PROCESSING SUMMARY",
            "=" * 60,
            f"Total Products Processed: {self.total_records:,}",
            f"Total Batches Sent:       {self.total_batches}",
            f"Total Data Processed:     {self.total_bytes / ONE_MEGABYTE:.2f}MB",
        ]

        if self.total_batches > 0:
            lines.append(
                f"Average Batch Size:       {self.avg_batch_bytes / ONE_MEGABYTE:.2f}MB"
            )
            lines.append(f"Average Products/Batch:   {self.avg_records_per_batch}")
            lines.append(f"Overall Utilization:      {self.utilization_pct:.2f}%")

            if self.full_batch_count > 0:
                lines.append(
                    f"Full Batches ({self.full_batch_count}):       "
                    f"{self.full_avg_bytes / ONE_MEGABYTE:.2f}MB avg, "
                    f"{self.full_utilization_pct:.2f}% utilization"
                )

            if self.partial_batch_count > 0:
                lines.append(
                    f"Partial Batches ({self.partial_batch_count}):    "
                    f"{self.partial_batch_bytes / ONE_MEGABYTE:.2f}MB total"
                )
        else:
            lines.append("No batches were sent.")

        lines.append("=" * 60)
        return lines


class RunStatistics:
    """
    Счётчики по батчам за время жизни одного аккумулятора.

    Обновляются только в момент закрытия батча. Синхронизации нет:
    аккумулятор используется из одного потока.

    :param max_size_bytes: Лимит батча в байтах (для классификации full/partial).
    """

    def __init__(self, max_size_bytes: float) -> None:
        self.max_size_bytes = max_size_bytes

        self.total_records = 0
        self.total_batches = 0
        self.total_bytes = 0

        self.full_batch_count = 0
        self.full_batch_bytes = 0

    def is_full(self, size_bytes: int) -> bool:
        """
        Проверяет, считается ли батч "полным".

        :param size_bytes: Точный размер батча в байтах.
        :return: True, если размер строго больше 95% лимита.
        """
        return size_bytes > self.max_size_bytes * FULL_BATCH_RATIO

    def record_batch(self, records: int, size_bytes: int) -> None:
        """
        Учитывает отправленный батч.

        :param records: Количество записей в батче.
        :param size_bytes: Точный размер сериализованного батча.
        :return: None.
        """
        self.total_records += records
        self.total_batches += 1
        self.total_bytes += size_bytes

        if self.is_full(size_bytes):
            self.full_batch_count += 1
            self.full_batch_bytes += size_bytes

    def snapshot(self) -> RunSummary:
        """
        Делает снимок текущих счётчиков.

        :return: RunSummary.
        """
        return RunSummary(
            max_size_bytes=self.max_size_bytes,
            total_records=self.total_records,
            total_batches=self.total_batches,
            total_bytes=self.total_bytes,
            full_batch_count=self.full_batch_count,
            full_batch_bytes=self.full_batch_bytes,
        )
