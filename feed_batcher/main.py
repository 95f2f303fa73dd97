import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from feed_batcher.db.connection import get_engine
from feed_batcher.db.ddl import init_db, truncate_payloads
from feed_batcher.feed.reader import ReaderStats, read_products
from feed_batcher.pipeline.batching import BatchAccumulator
from feed_batcher.pipeline.metrics import RunSummary
from feed_batcher.settings.ini_settings import SINK_KINDS
from feed_batcher.settings.logging import logger
from feed_batcher.settings.settings import AppSettings, load_settings
from feed_batcher.sinks.base import BatchSink
from feed_batcher.sinks.logging_sink import LoggingSink
from feed_batcher.sinks.memory_sink import MemorySink
from feed_batcher.sinks.postgres_sink import PostgresSink
from feed_batcher.utils.errors import FeedError, SettingsError


def build_sink(
    kind: str, settings: AppSettings, *, truncate: bool = False
) -> BatchSink:
    """
    Создаёт sink по имени из конфигурации.

    :param kind: "log", "memory" или "postgres".
    :param settings: Настройки приложения (нужны для postgres).
    :param truncate: Очистить batch_payload перед прогоном (только postgres).
    :return: Объект, реализующий BatchSink.
    :raises SettingsError: Если для postgres не задано подключение к БД.
    """
    if kind == "postgres":
        if settings.env.db_url is None:
            raise SettingsError("Sink 'postgres' требует ENV POSTGRES_HOST и др.")
        engine = get_engine(settings.env.db_url)
        init_db(engine)
        if truncate:
            truncate_payloads(engine)
            logger.info("Таблица batch_payload очищена.")
        return PostgresSink(engine)
    if kind == "memory":
        return MemorySink()
    return LoggingSink()


def run(
    feed_path: Path,
    max_size_mb: float,
    sink: BatchSink,
    *,
    item_tag: str = "item",
    recover: bool = True,
    huge_tree: bool = True,
    progress_every: int = 5000,
) -> Optional[RunSummary]:
    """
    Читает фид, батчит товары и отдаёт батчи в sink.

    Последовательность:
    1) парсит фид целиком (длина нужна для процента прогресса)
    2) прогоняет товары через BatchAccumulator
    3) в любом случае делает flush, чтобы не потерять хвост батча

    :param feed_path: Путь к XML-фиду.
    :param max_size_mb: Лимит батча в мегабайтах.
    :param sink: Получатель батчей.
    :param item_tag: Тег элемента товара.
    :param recover: lxml recover.
    :param huge_tree: lxml huge_tree.
    :param progress_every: Шаг логирования прогресса.
    :return: RunSummary или None, если в фиде нет товаров.
    :raises FeedError: Если файл фида не найден.
    """
    logger.info("Reading feed from: %s", feed_path)

    stats = ReaderStats()
    products = read_products(
        feed_path,
        item_tag=item_tag,
        recover=recover,
        huge_tree=huge_tree,
        stats=stats,
    )

    if not products:
        logger.warning("No products found in feed")
        return None

    logger.info(
        "Found %s products in feed (skipped=%s)",
        f"{len(products):,}",
        stats.skipped_records,
    )

    accumulator = BatchAccumulator(max_size_mb, sink, progress_every=progress_every)
    try:
        accumulator.add_products(products)
    finally:
        summary = accumulator.flush()

    return summary


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Разбирает аргументы командной строки.

    :param argv: Аргументы (по умолчанию sys.argv[1:]).
    :return: argparse.Namespace.
    """
    parser = argparse.ArgumentParser(
        description="Split a product feed into size-limited JSON batches"
    )
    parser.add_argument(
        "feed",
        type=Path,
        nargs="?",
        default=None,
        help="Path to the XML feed (defaults to [FEED] path in config.ini)",
    )
    parser.add_argument(
        "--max-size-mb",
        type=float,
        default=None,
        help="Batch size limit in megabytes",
    )
    parser.add_argument(
        "--sink",
        choices=SINK_KINDS,
        default=None,
        help="Where to send batches",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.ini",
    )
    parser.add_argument(
        "--truncate",
        action="store_true",
        help="Clear stored batches before the run (postgres sink only)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Точка входа: фид -> батчи -> sink.

    :param argv: Аргументы командной строки.
    :return: Код выхода процесса (0 — успех, 1 — ошибка).
    """
    args = parse_args(argv)

    try:
        settings = (
            load_settings(args.config) if args.config is not None else load_settings()
        )
        ini = settings.ini

        feed_path = args.feed if args.feed is not None else Path(ini.feed_path)
        max_size_mb = (
            args.max_size_mb if args.max_size_mb is not None else ini.max_size_mb
        )
        if max_size_mb <= 0:
            raise SettingsError(f"max_size_mb должен быть > 0, получено: {max_size_mb}")

        sink = build_sink(
            args.sink or ini.sink_kind, settings, truncate=args.truncate
        )

        run(
            feed_path,
            max_size_mb,
            sink,
            item_tag=ini.item_tag,
            recover=ini.lxml_recover,
            huge_tree=ini.lxml_huge_tree,
            progress_every=ini.progress_every,
        )
    except (FeedError, SettingsError) as e:
        logger.error("Error: %s", e)
        return 1
    except Exception:
        logger.exception("Processing failed")
        return 1

    logger.info("Processing complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
