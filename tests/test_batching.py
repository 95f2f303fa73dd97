import json
import logging

import pytest

from feed_batcher.pipeline import batching
from feed_batcher.pipeline.batching import BatchAccumulator, create_accumulator
from feed_batcher.sinks.memory_sink import MemorySink

ONE_KB_IN_MB = 1 / 1024


def make_product(i: int, description_len: int = 20) -> dict:
    return {
        "id": str(i),
        "title": f"Product {i}",
        "description": "x" * description_len,
    }


class FailingSink:
    """Sink, который падает на N-м вызове (по умолчанию — на первом)."""

    def __init__(self, fail_on: int = 1) -> None:
        self.fail_on = fail_on
        self.calls = 0
        self.payloads = []

    def call(self, payload: bytes) -> None:
        self.calls += 1
        if self.calls == self.fail_on:
            raise RuntimeError("external service unavailable")
        self.payloads.append(payload)


def test_two_small_products_go_in_one_batch():
    """
    Лимит 5 MB, два маленьких товара: один вызов sink,
    массив из двух элементов в исходном порядке.
    """
    sink = MemorySink()
    acc = create_accumulator(5, sink)
    products = [make_product(1), make_product(2)]

    acc.add_products(products)
    acc.flush()

    assert len(sink.payloads) == 1
    assert sink.batches[0] == products


def test_small_limit_splits_into_several_batches():
    """
    Лимит 1 KB, 20 товаров по ~100+ байт: несколько батчей, всего 20 записей.
    """
    sink = MemorySink()
    acc = create_accumulator(ONE_KB_IN_MB, sink)

    acc.add_products([make_product(i, description_len=80) for i in range(20)])
    acc.flush()

    assert len(sink.payloads) > 1
    assert sum(len(b) for b in sink.batches) == 20


def test_every_multi_record_batch_fits_the_limit():
    """
    Лимит 10 KB, 100 товаров с описанием ~200 байт:
    все 100 записей доставлены, каждый батч (> 1 записи) не больше 10 KB.
    """
    sink = MemorySink()
    acc = create_accumulator(10 * ONE_KB_IN_MB, sink)

    acc.add_products([make_product(i, description_len=200) for i in range(100)])
    acc.flush()

    assert sum(len(b) for b in sink.batches) == 100
    for payload, batch in zip(sink.payloads, sink.batches):
        if len(batch) > 1:
            assert len(payload) <= 10 * 1024


def test_single_product_is_sent_as_single_element_array():
    sink = MemorySink()
    acc = create_accumulator(5, sink)

    acc.add_product(make_product(1))
    acc.flush()

    assert len(sink.payloads) == 1
    assert sink.batches == [[make_product(1)]]


def test_flush_without_products_sends_nothing():
    sink = MemorySink()
    acc = create_accumulator(5, sink)

    summary = acc.flush()

    assert sink.payloads == []
    assert summary.total_batches == 0
    assert "No batches were sent." in summary.report_lines()


def test_order_and_completeness_with_mixed_sizes():
    """
    Склейка всех батчей в порядке отправки даёт исходную последовательность:
    без перестановок, потерь и дублей.
    """
    products = [
        {"id": str(i), "name": "ünïcödé" * (i % 7), "tags": list(range(i % 5))}
        for i in range(500)
    ]
    sink = MemorySink()
    acc = create_accumulator(2 * ONE_KB_IN_MB, sink)

    acc.add_products(products)
    acc.flush()

    assert sink.records == products
    for payload, batch in zip(sink.payloads, sink.batches):
        assert batch, "пустой батч не должен отправляться"
        if len(batch) > 1:
            assert len(payload) <= 2 * 1024


def test_payload_is_compact_json_array():
    sink = MemorySink()
    acc = create_accumulator(5, sink)

    acc.add_product({"id": "1", "title": "Grüße"})
    acc.flush()

    assert sink.payloads[0] == '[{"id":"1","title":"Grüße"}]'.encode("utf-8")


def test_oversized_product_is_sent_alone():
    """
    Товар больше лимита уходит отдельным батчем из одной записи
    и этот батч превышает лимит (известное ограничение).
    """
    small_a = make_product(1)
    big = make_product(2, description_len=2000)
    small_b = make_product(3)

    sink = MemorySink()
    acc = create_accumulator(ONE_KB_IN_MB, sink)

    acc.add_products([small_a, big, small_b])
    acc.flush()

    assert sink.batches == [[small_a], [big], [small_b]]
    assert len(sink.payloads[1]) > 1024


def test_oversized_first_product_is_not_rejected():
    big = make_product(1, description_len=5000)
    sink = MemorySink()
    acc = create_accumulator(ONE_KB_IN_MB, sink)

    acc.add_product(big)
    assert len(acc) == 1

    acc.flush()
    assert sink.batches == [[big]]


def test_flush_twice_sends_once():
    sink = MemorySink()
    acc = create_accumulator(5, sink)
    acc.add_products([make_product(1), make_product(2)])

    first = acc.flush()
    second = acc.flush()

    assert len(sink.payloads) == 1
    assert first == second


def test_exact_size_recomputed_on_first_three_and_every_hundredth(monkeypatch):
    """
    Точный пересчёт размера вызывается только на 1–3 и каждой сотой записи.
    """
    lengths = []
    original = batching.exact_batch_size

    def counting(batch):
        lengths.append(len(batch))
        return original(batch)

    monkeypatch.setattr(batching, "exact_batch_size", counting)

    acc = BatchAccumulator(5, MemorySink())
    for i in range(250):
        acc.add_product({"id": str(i)})

    assert lengths == [1, 2, 3, 100, 200]
    assert acc.size_estimate == original([{"id": str(i)} for i in range(250)])


def test_new_batch_after_close_gets_exact_size():
    sink = MemorySink()
    acc = create_accumulator(ONE_KB_IN_MB, sink)

    products = [make_product(i, description_len=300) for i in range(4)]
    acc.add_products(products)

    assert len(sink.payloads) >= 1
    current = products[sum(len(b) for b in sink.batches):]
    assert acc.size_estimate == len(json.dumps(current, separators=(",", ":")))


def test_add_products_accepts_iterators_and_empty_input():
    sink = MemorySink()
    acc = create_accumulator(5, sink)

    assert acc.add_products([]) == 0
    assert acc.add_products(make_product(i) for i in range(3)) == 3

    acc.flush()
    assert [p["id"] for p in sink.records] == ["0", "1", "2"]


def test_add_products_logs_progress(caplog):
    caplog.set_level(logging.INFO, logger="feed_batcher")

    acc = BatchAccumulator(5, MemorySink(), progress_every=2)
    acc.add_products([make_product(i) for i in range(4)])
    acc.flush()

    assert "Progress: 2/4 products (50.0%)" in caplog.messages
    assert "Progress: 4/4 products (100.0%)" in caplog.messages
    assert "Completed processing all 4 products" in caplog.messages
    assert any(m.startswith("Sending batch 1... (4 products") for m in caplog.messages)


def test_sink_error_propagates_and_batch_is_counted():
    """
    Ошибка sink не перехватывается. Батч уже учтён в статистике,
    а аккумулятор возвращается в пустое состояние.
    """
    sink = FailingSink()
    acc = create_accumulator(5, sink)
    acc.add_product(make_product(1))

    with pytest.raises(RuntimeError):
        acc.flush()

    assert len(acc) == 0
    assert acc.stats.total_batches == 1
    assert acc.stats.total_records == 1

    # повторный flush — пустой батч, sink больше не вызывается
    summary = acc.flush()
    assert sink.calls == 1
    assert summary.total_batches == 1


def test_sink_error_while_closing_drops_triggering_product():
    sink = FailingSink()
    acc = create_accumulator(ONE_KB_IN_MB, sink)

    with pytest.raises(RuntimeError):
        for i in range(20):
            acc.add_product(make_product(i, description_len=200))

    assert len(acc) == 0
    assert acc.size_estimate == 0
    assert acc.stats.total_batches == 1


def test_non_positive_limit_is_rejected():
    with pytest.raises(ValueError):
        BatchAccumulator(0, MemorySink())
    with pytest.raises(ValueError):
        BatchAccumulator(-1, MemorySink())


def test_limit_is_converted_with_binary_megabytes():
    acc = create_accumulator(5, MemorySink())
    assert acc.max_size_bytes == 5 * 1_048_576


def test_product_with_nan_is_rejected_before_batching():
    sink = MemorySink()
    acc = create_accumulator(5, sink)
    acc.add_product(make_product(1))

    with pytest.raises(ValueError):
        acc.add_product({"id": "2", "price": float("nan")})

    acc.flush()
    assert sink.batches == [[make_product(1)]]


def test_product_with_lone_surrogate_is_sent_as_valid_json():
    sink = MemorySink()
    acc = create_accumulator(5, sink)

    acc.add_product({"id": "\ud800"})
    acc.flush()

    assert sink.payloads == [b'[{"id":"\\ud800"}]']
    assert sink.records == [{"id": "\ud800"}]
