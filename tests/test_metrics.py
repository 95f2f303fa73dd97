import pytest

from feed_batcher.pipeline.metrics import RunStatistics


def test_full_and_partial_batches_are_split_at_95_percent():
    """
    Батч "полный", если его размер строго больше 95% лимита.
    Частичные значения вычисляются из итогов, а не копятся отдельно.
    """
    stats = RunStatistics(max_size_bytes=1000)

    stats.record_batch(records=3, size_bytes=960)
    stats.record_batch(records=2, size_bytes=940)

    summary = stats.snapshot()
    assert summary.total_records == 5
    assert summary.total_batches == 2
    assert summary.total_bytes == 1900
    assert summary.full_batch_count == 1
    assert summary.full_batch_bytes == 960
    assert summary.partial_batch_count == 1
    assert summary.partial_batch_bytes == 940


def test_summary_averages():
    stats = RunStatistics(max_size_bytes=1000)
    stats.record_batch(records=3, size_bytes=960)
    stats.record_batch(records=2, size_bytes=940)

    summary = stats.snapshot()
    assert summary.avg_batch_bytes == 950
    # 2.5 округляется вверх
    assert summary.avg_records_per_batch == 3
    assert summary.utilization_pct == pytest.approx(95.0)
    assert summary.full_avg_bytes == 960
    assert summary.full_utilization_pct == pytest.approx(96.0)


def test_report_lines_mention_full_and_partial_batches():
    stats = RunStatistics(max_size_bytes=1000)
    stats.record_batch(records=3, size_bytes=960)
    stats.record_batch(records=2, size_bytes=940)

    lines = stats.snapshot().report_lines()

    assert "PROCESSING SUMMARY" in lines
    assert "Total Batches Sent:       2" in lines
    assert "Average Products/Batch:   3" in lines
    assert "Overall Utilization:      95.00%" in lines
    assert any(line.startswith("Full Batches (1):") for line in lines)
    assert any(line.startswith("Partial Batches (1):") for line in lines)


def test_empty_summary_does_not_divide():
    summary = RunStatistics(max_size_bytes=1000).snapshot()

    assert summary.avg_batch_bytes is None
    assert summary.avg_records_per_batch is None
    assert summary.utilization_pct is None
    assert summary.full_avg_bytes is None
    assert "No batches were sent." in summary.report_lines()
    assert summary.as_dict()["total_batches"] == 0


def test_only_partial_batches_have_no_full_line():
    stats = RunStatistics(max_size_bytes=1000)
    stats.record_batch(records=1, size_bytes=100)

    lines = stats.snapshot().report_lines()

    assert not any(line.startswith("Full Batches") for line in lines)
    assert any(line.startswith("Partial Batches (1):") for line in lines)


def test_batch_exactly_at_threshold_is_partial():
    """
    Ровно 95% лимита — ещё не "полный" батч (сравнение строгое).
    """
    stats = RunStatistics(max_size_bytes=1000)
    stats.record_batch(records=1, size_bytes=950)

    summary = stats.snapshot()
    assert summary.full_batch_count == 0
    assert summary.partial_batch_count == 1
