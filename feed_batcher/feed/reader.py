from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from lxml import etree

from feed_batcher.feed.parser import Product, parse_item
from feed_batcher.utils.errors import FeedError

DEFAULT_ITEM_TAG = "item"


@dataclass
class ReaderStats:
    """
    Счётчики работы streaming-ридера фида.

    :ivar items_seen: Количество обработанных элементов товара.
    :ivar products_emitted: Количество успешно распарсенных товаров.
    :ivar skipped_records: Количество пропусков (нет id).
    """

    items_seen: int = 0
    products_emitted: int = 0
    skipped_records: int = 0


def iter_products(
    xml_path: Path,
    item_tag: str = DEFAULT_ITEM_TAG,
    recover: bool = True,
    huge_tree: bool = True,
    stats: Optional[ReaderStats] = None,
) -> Iterator[Product]:
    """
    Итерирует по XML-фиду и потоково возвращает товары по одному.

    Использует lxml.etree.iterparse по событию "end"; тег сравнивается
    по локальному имени, поэтому <item> находится и внутри namespace-фидов.
    После обработки каждого элемента память освобождается через
    element.clear() и удаление уже обработанных siblings слева.

    :param xml_path: Путь к XML-файлу.
    :param item_tag: Локальное имя тега товара.
    :param recover: Включить режим восстановления при ошибках XML.
    :param huge_tree: Разрешить обработку "больших" деревьев XML.
    :param stats: Опциональный объект ReaderStats для накопления статистики.
    :yield: Товар (dict) для каждого корректного элемента.
    :raises FeedError: Если файл фида не существует.
    """
    if not Path(xml_path).is_file():
        raise FeedError(f"Feed file not found: {xml_path}")

    if stats is None:
        stats = ReaderStats()

    context = etree.iterparse(
        str(xml_path),
        events=("end",),
        tag=(item_tag, f"{{*}}{item_tag}"),
        recover=recover,
        huge_tree=huge_tree,
    )

    for _event, el in context:
        stats.items_seen += 1

        parsed = parse_item(el)
        stats.skipped_records += parsed.skipped

        if parsed.product is not None:
            stats.products_emitted += 1
            yield parsed.product

        # Очистка памяти:
        el.clear()
        parent = el.getparent()
        if parent is not None:
            while el.getprevious() is not None:
                del parent[0]

    # iterparse держит файл/парсер — чистим
    del context


def read_products(
    xml_path: Path,
    item_tag: str = DEFAULT_ITEM_TAG,
    recover: bool = True,
    huge_tree: bool = True,
    stats: Optional[ReaderStats] = None,
) -> List[Product]:
    """
    Читает весь фид в список (нужна длина для процента прогресса).

    :param xml_path: Путь к XML-файлу.
    :param item_tag: Локальное имя тега товара.
    :param recover: lxml recover.
    :param huge_tree: lxml huge_tree.
    :param stats: Опциональный ReaderStats.
    :return: Список товаров в порядке документа.
    """
    return list(
        iter_products(
            xml_path,
            item_tag=item_tag,
            recover=recover,
            huge_tree=huge_tree,
            stats=stats,
        )
    )
