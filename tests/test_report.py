import csv
import logging

from traffic_gen.core.pattern import TrafficPattern, TrafficStatistics
from traffic_gen.utils.report import (
    SUMMARY_HEADER,
    log_statistics,
    save_summary_to_csv,
    summary_rows,
)
from traffic_gen.utils.visualization import plot_selection_frequencies


def make_run():
    a = TrafficPattern(weight_percent=30, name="/a", expected_content="x")
    b = TrafficPattern(weight_percent=70, name="/b")
    for _ in range(4):
        a.stats.record_sent()
    a.stats.record_response(2.0)
    a.stats.record_response(4.0, consistent=False)
    b.stats.record_sent()
    b.stats.record_nack()

    totals = TrafficStatistics()
    for _ in range(5):
        totals.record_sent()
    totals.record_response(2.0)
    totals.record_response(4.0, consistent=False)
    totals.record_nack()
    return [a, b], totals


def test_rows_overall_first_in_header_order():
    patterns, totals = make_run()
    rows = summary_rows(patterns, totals)

    assert [row[0] for row in rows] == ["Overall", "1", "2"]
    assert all(len(row) == len(SUMMARY_HEADER) for row in rows)

    overall = dict(zip(SUMMARY_HEADER, rows[0]))
    assert overall["RequestsSent"] == "5"
    assert overall["ResponsesReceived"] == "2"
    assert overall["Nacks"] == "1"
    assert overall["RequestLoss(%)"] == "60.000000"
    assert overall["Inconsistency(%)"] == "50.000000"
    assert overall["TotalRTT(ms)"] == "6.000000"
    assert overall["AverageRTT(ms)"] == "3.000000"

    second = dict(zip(SUMMARY_HEADER, rows[2]))
    assert second["RequestLoss(%)"] == "100.000000"
    assert second["AverageRTT(ms)"] == "0.000000"
    assert second["MinRTT(ms)"] == "0.000000"


def test_save_summary_to_csv(tmp_path):
    patterns, totals = make_run()
    path = tmp_path / "out" / "summary.csv"
    save_summary_to_csv(patterns, totals, str(path))

    with open(path, newline="") as f:
        rows = list(csv.reader(f))

    assert rows[0] == SUMMARY_HEADER
    assert len(rows) == 4
    assert rows[1][0] == "Overall"


def test_log_statistics(caplog):
    patterns, totals = make_run()
    with caplog.at_level(logging.INFO, logger="traffic_gen"):
        log_statistics(patterns, totals)

    text = caplog.text
    assert "== Traffic Report ==" in text
    assert "Total Traffic Pattern Types = 2" in text
    assert "Total Requests Sent         = 5" in text
    assert "Total Request Loss          = 60.000000%" in text
    assert "Traffic Pattern Type #2" in text
    assert "TrafficPercentage=70, Name=/b" in text


def test_selection_frequency_chart(tmp_path):
    path = plot_selection_frequencies(
        {"Uniform": [0.3, 0.7], "Zipf-Mandelbrot": [0.6, 0.4]},
        str(tmp_path / "charts"),
        filename="shares",
    )
    assert path.endswith("shares.png")
    assert (tmp_path / "charts" / "shares.png").exists()
