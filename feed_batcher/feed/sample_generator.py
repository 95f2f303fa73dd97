import argparse
from pathlib import Path
from xml.sax.saxutils import escape

from feed_batcher.feed.reader import DEFAULT_ITEM_TAG

G_NAMESPACE = "http://base.google.com/ns/1.0"


def generate_sample_feed(
    out_path: Path,
    products: int = 1000,
    description_bytes: int = 200,
    item_tag: str = DEFAULT_ITEM_TAG,
) -> None:
    """
    Генерирует синтетический фид товаров для тестов/бенчмарков.

    Формат (RSS 2.0 + Google namespace):
    <rss xmlns:g="http://base.google.com/ns/1.0" version="2.0">
      <channel>
        <item>
          <g:id>1</g:id>
          <title>Product 1</title>
          <description>...</description>
          <g:price>10.00 EUR</g:price>
        </item>
      </channel>
    </rss>

    :param out_path: Путь, куда сохранить XML-файл.
    :param products: Количество товаров.
    :param description_bytes: Примерная длина описания каждого товара.
    :param item_tag: Тег элемента товара.
    :return: None.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    filler = "Lorem ipsum dolor sit amet, consectetur adipiscing elit. "
    description = (filler * (description_bytes // len(filler) + 1))[
        :description_bytes
    ]

    with out_path.open("w", encoding="utf-8") as f:
        f.write('<?xml version="1.0" encoding="UTF-8"?>\n')
        f.write(f'<rss xmlns:g="{G_NAMESPACE}" version="2.0">\n')
        f.write("  <channel>\n")

        for pid in range(1, products + 1):
            f.write(f"    <{item_tag}>\n")
            f.write(f"      <g:id>{pid}</g:id>\n")
            f.write(f"      <title>Product {pid}</title>\n")
            f.write(f"      <description>{escape(description)}</description>\n")
            f.write(f"      <link>https://example.com/p/{pid}</link>\n")
            f.write(f"      <g:price>{pid % 100 + 0.99:.2f} EUR</g:price>\n")
            f.write(f"    </{item_tag}>\n")

        f.write("  </channel>\n")
        f.write("</rss>\n")


def main() -> None:
    """
    Запуск из терминала функции generate_sample_feed.

    :return: None.
    """
    parser = argparse.ArgumentParser(description="Generate sample product feed")
    parser.add_argument(
        "--out",
        type=Path,
        required=True,
        help="Output XML file path",
    )
    parser.add_argument(
        "--products",
        type=int,
        default=1000,
        help="Number of product elements",
    )
    parser.add_argument(
        "--description-bytes",
        type=int,
        default=200,
        help="Approximate length of each product description",
    )

    args = parser.parse_args()

    generate_sample_feed(
        out_path=args.out,
        products=args.products,
        description_bytes=args.description_bytes,
    )


if __name__ == "__main__":
    main()
