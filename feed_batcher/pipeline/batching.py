from typing import Any, Iterable, List

from feed_batcher.pipeline.metrics import RunStatistics, RunSummary
from feed_batcher.pipeline.sizing import (
    ONE_MEGABYTE,
    exact_batch_size,
    incremental_addition_size,
    serialize,
    should_recalibrate,
)
from feed_batcher.settings.logging import logger
from feed_batcher.sinks.base import BatchSink

# Как часто add_products пишет прогресс в лог
PROGRESS_EVERY = 5000


class BatchAccumulator:
    """
    Накопитель записей в батчи с лимитом по размеру сериализованного JSON.

    Размер текущего батча отслеживается инкрементально и периодически
    пересчитывается точно (см. sizing.should_recalibrate), чтобы ограничить
    накопленный дрейф оценки.

    Известное ограничение: запись, которая сама по себе больше лимита,
    уходит отдельным батчем из одной записи и этот батч превышает лимит.
    Запись не отклоняется и не режется.

    :param max_size_mb: Лимит батча в мегабайтах (1 MB = 1 048 576 байт).
    :param sink: Получатель сериализованных батчей.
    :param progress_every: Шаг логирования прогресса в add_products.
    """

    def __init__(
        self,
        max_size_mb: float,
        sink: BatchSink,
        *,
        progress_every: int = PROGRESS_EVERY,
    ) -> None:
        if max_size_mb <= 0:
            raise ValueError(f"max_size_mb должен быть > 0, получено: {max_size_mb!r}")

        self.max_size_mb = max_size_mb
        self.max_size_bytes = max_size_mb * ONE_MEGABYTE
        self.sink = sink
        self.progress_every = int(progress_every)

        self.stats = RunStatistics(self.max_size_bytes)

        self._batch: List[Any] = []
        self._size: int = 0

    def __len__(self) -> int:
        """
        Возвращает количество записей в текущем (ещё не отправленном) батче.

        :return: Количество записей в буфере.
        """
        return len(self._batch)

    @property
    def size_estimate(self) -> int:
        """
        Текущая оценка размера батча в байтах.

        :return: Оценочный размер батча.
        """
        return self._size

    def add_product(self, record: Any) -> None:
        """
        Добавляет запись.

        Если с этой записью оценка размера превысит лимит, а батч не пуст —
        текущий батч отправляется, и запись начинает новый батч.

        :param record: JSON-сериализуемая запись.
        :return: None.
        """
        estimated_addition = incremental_addition_size(record, bool(self._batch))
        estimated_new_size = self._size + estimated_addition

        if estimated_new_size > self.max_size_bytes and self._batch:
            self._send_batch()
            self._batch = [record]
            self._size = exact_batch_size(self._batch)
            return

        self._batch.append(record)

        # коррекция дрейфа: на первых записях и каждой сотой
        if should_recalibrate(len(self._batch)):
            self._size = exact_batch_size(self._batch)
        else:
            self._size = estimated_new_size

    def add_products(self, records: Iterable[Any]) -> int:
        """
        Добавляет записи по одной, с логированием прогресса.

        На границы батчей не влияет — это тот же цикл по add_product.
        Если у входа есть длина, в прогрессе выводится процент.

        :param records: Последовательность или итератор записей.
        :return: Сколько записей обработано.
        """
        total = len(records) if hasattr(records, "__len__") else None
        processed = 0

        if total is not None:
            logger.info("Processing %s products...", f"{total:,}")
        else:
            logger.info("Processing products...")

        for record in records:
            self.add_product(record)
            processed += 1

            if self.progress_every > 0 and processed % self.progress_every == 0:
                if total:
                    logger.info(
                        "Progress: %s/%s products (%.1f%%)",
                        f"{processed:,}",
                        f"{total:,}",
                        processed / total * 100,
                    )
                else:
                    logger.info("Progress: %s products", f"{processed:,}")

        logger.info("Completed processing all %s products", f"{processed:,}")
        return processed

    def flush(self) -> RunSummary:
        """
        Отправляет незавершённый батч (если он есть) и выводит сводку.

        Повторный вызов без новых записей ничего не отправляет,
        а сводка остаётся той же.

        :return: RunSummary.
        """
        self._send_batch()

        summary = self.stats.snapshot()
        for line in summary.report_lines():
            logger.info(line)
        return summary

    def _send_batch(self) -> None:
        """
        Сериализует текущий батч, отдаёт его в sink и начинает новый.

        Пустой батч не отправляется. Статистика и сброс состояния выполняются
        после попытки вызова sink, в том числе если sink выбросил исключение:
        такой батч остаётся учтённым как отправленный.

        :return: None.
        """
        if not self._batch:
            return

        payload = serialize(self._batch)
        records = len(self._batch)
        size = len(payload)

        logger.info(
            "Sending batch %s... (%s products, %.4fMB)",
            self.stats.total_batches + 1,
            records,
            size / ONE_MEGABYTE,
        )

        try:
            self.sink.call(payload)
        finally:
            self.stats.record_batch(records, size)
            self._batch = []
            self._size = 0


def create_accumulator(max_size_mb: float, sink: BatchSink) -> BatchAccumulator:
    """
    Создаёт аккумулятор батчей.

    :param max_size_mb: Лимит батча в мегабайтах.
    :param sink: Получатель сериализованных батчей.
    :return: BatchAccumulator.
    """
    return BatchAccumulator(max_size_mb, sink)
