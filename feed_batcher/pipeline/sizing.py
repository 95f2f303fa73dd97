import json
from typing import Any, Sequence

# 1 MiB: лимит батча задаётся в мегабайтах
ONE_MEGABYTE = 1_048_576.0

# Перерасчёт точного размера батча каждые N записей
RECALIBRATE_EVERY = 100
# ... и всегда, пока в батче не больше N записей
RECALIBRATE_FIRST = 3

_EMPTY_ARRAY_BYTES = 2  # "[]"


def serialize(value: Any) -> bytes:
    """
    Сериализует значение в компактный JSON (UTF-8).

    Формат совпадает с тем, что уходит во внешний сервис:
    без пробелов между элементами, не-ASCII символы не экранируются.
    Одиночные суррогаты пишутся JSON-escape вида \\ud800.

    :param value: JSON-сериализуемое значение (запись или список записей).
    :return: UTF-8 байты JSON.
    :raises ValueError: Если в значении есть NaN или бесконечность.
    :raises TypeError: Если значение не сериализуется в JSON.
    """
    text = json.dumps(
        value, ensure_ascii=False, allow_nan=False, separators=(",", ":")
    )
    return text.encode("utf-8", "backslashreplace")


def exact_batch_size(batch: Sequence[Any]) -> int:
    """
    Точный размер батча в байтах: JSON-массив целиком, включая скобки и запятые.

    Стоимость O(n) от размера батча, поэтому вызывается не на каждую вставку.

    :param batch: Последовательность записей.
    :return: Длина сериализованного массива в байтах (2 для пустого батча).
    """
    if not batch:
        return _EMPTY_ARRAY_BYTES
    return len(serialize(list(batch)))


def incremental_addition_size(record: Any, batch_is_non_empty: bool) -> int:
    """
    Оценка прироста размера батча при добавлении одной записи.

    Считается только сама запись плюс 1 байт на запятую-разделитель,
    если батч уже не пуст. Ранее добавленные записи не пересчитываются,
    поэтому оценка может "дрейфовать" относительно точного размера.

    :param record: Добавляемая запись.
    :param batch_is_non_empty: В батче уже есть хотя бы одна запись.
    :return: Оценка прироста в байтах.
    """
    separator = 1 if batch_is_non_empty else 0
    return len(serialize(record)) + separator


def should_recalibrate(batch_len: int) -> bool:
    """
    Нужно ли пересчитать размер батча точно после вставки.

    Первые RECALIBRATE_FIRST записей и каждая RECALIBRATE_EVERY-я —
    точный пересчёт, в остальных случаях используется инкрементальная оценка.

    :param batch_len: Длина батча после вставки.
    :return: True, если размер нужно пересчитать через exact_batch_size.
    """
    return batch_len <= RECALIBRATE_FIRST or batch_len % RECALIBRATE_EVERY == 0
