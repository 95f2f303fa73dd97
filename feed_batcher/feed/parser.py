from dataclasses import dataclass
from typing import Any, Dict, Optional

from lxml import etree

Product = Dict[str, Any]

# Обязательное поле товара
ID_FIELD = "id"


@dataclass(frozen=True)
class ParseResult:
    """
    Результат парсинга одного элемента товара (<item>).

    :ivar product: Товар в виде словаря или None, если элемент пропущен.
    :ivar skipped: 1, если элемент пропущен (нет id), иначе 0.
    """

    product: Optional[Product]
    skipped: int


def _clean_text(value: Optional[str]) -> Optional[str]:
    """
    Нормализует строковое значение.

    Удаляет пробелы по краям и заменяет пустую строку на None.

    :param value: Входное строковое значение (может быть None).
    :return: Очищенная строка или None, если входное значение None/пустое.
    """
    if value is None:
        return None
    s = value.strip()
    return s if s else None


def _local_name(el: etree._Element) -> str:
    """
    Имя тега без namespace: <g:price> -> "price".

    :param el: XML-элемент.
    :return: Локальное имя тега.
    """
    return etree.QName(el).localname


def _element_value(el: etree._Element) -> Any:
    """
    Преобразует элемент в значение записи.

    Лист — очищенный текст (или None), элемент с дочерними — словарь.

    :param el: XML-элемент.
    :return: str, None или dict.
    """
    children = [c for c in el if isinstance(c.tag, str)]
    if not children:
        return _clean_text(el.text)
    return _children_to_dict(children)


def _children_to_dict(children: list) -> Dict[str, Any]:
    """
    Собирает словарь из дочерних элементов.

    Повторяющиеся теги собираются в список в порядке документа.

    :param children: Дочерние элементы (без комментариев/PI).
    :return: Словарь имя тега -> значение.
    """
    out: Dict[str, Any] = {}
    for child in children:
        key = _local_name(child)
        value = _element_value(child)
        if key not in out:
            out[key] = value
        elif isinstance(out[key], list):
            out[key].append(value)
        else:
            out[key] = [out[key], value]
    return out


def parse_item(item_el: etree._Element) -> ParseResult:
    """
    Парсит один элемент товара и все вложенные поля.

    Правила:
    - каждое дочернее поле становится ключом (без namespace-префикса);
    - текст очищается, пустой текст становится None;
    - вложенные элементы становятся вложенными словарями;
    - поле id обязательно: товар без непустого id пропускается.

    :param item_el: XML-элемент товара, полученный из lxml.
    :return: ParseResult с товаром (или None) и числом пропусков.
    """
    product = _children_to_dict([c for c in item_el if isinstance(c.tag, str)])

    product_id = product.get(ID_FIELD)
    if not isinstance(product_id, str) or not product_id:
        return ParseResult(product=None, skipped=1)

    return ParseResult(product=product, skipped=0)
