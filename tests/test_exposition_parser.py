"""指标文本解析测试"""
import pytest

from netaware_scheduler.utils.exposition_parser import metric_key, parse_exposition


def test_metric_key_sorts_labels():
    assert metric_key("node_disk_io_now") == "node_disk_io_now"
    assert metric_key("node_disk_io_now", {}) == "node_disk_io_now"
    assert metric_key("m", {"b": "2", "a": "1"}) == 'm{a="1",b="2"}'
    assert metric_key("m", {"a": "1", "b": "2"}) == metric_key("m", {"b": "2", "a": "1"})


def test_parse_reads_values_by_name_and_labels(make_exposition):
    metrics = parse_exposition(make_exposition())

    assert metrics.get("node_cpu_scaling_frequency_hertz", cpu="0") == pytest.approx(1.2e9)
    assert metrics.get("node_memory_MemTotal_bytes") == pytest.approx(4.0e9)
    assert metrics.get("node_network_transmit_packets_total", device="eth0") == 1500
    assert metrics.get("node_network_transmit_packets_total", device="flannel.1") == 98
    assert metrics.get("node_disk_io_now", device="mmcblk0p1") == 7


def test_parse_missing_metric_returns_none(make_exposition):
    metrics = parse_exposition(make_exposition())

    assert metrics.get("node_disk_io_now", device="sda") is None
    assert metrics.get("node_load1") is None


def test_parse_is_independent_of_line_order():
    text_a = (
        "# TYPE node_memory_MemTotal_bytes gauge\n"
        "node_memory_MemTotal_bytes 8e+09\n"
        "# TYPE node_disk_io_now gauge\n"
        'node_disk_io_now{device="sda"} 3\n'
    )
    text_b = (
        "# TYPE node_disk_io_now gauge\n"
        'node_disk_io_now{device="sda"} 3\n'
        "# TYPE node_memory_MemTotal_bytes gauge\n"
        "node_memory_MemTotal_bytes 8e+09\n"
    )

    assert dict(parse_exposition(text_a).items()) == dict(parse_exposition(text_b).items())


def test_parse_multiple_labels_in_any_order():
    text = 'node_filesystem_avail_bytes{mountpoint="/",device="/dev/sda1"} 1024\n'
    metrics = parse_exposition(text)

    assert metrics.get("node_filesystem_avail_bytes", device="/dev/sda1", mountpoint="/") == 1024
    assert 'node_filesystem_avail_bytes{device="/dev/sda1",mountpoint="/"}' in metrics


def test_parse_ignores_comments_and_blank_lines():
    text = (
        "# HELP node_load1 1m load average.\n"
        "\n"
        "# TYPE node_load1 gauge\n"
        "node_load1 0.25\n"
    )
    metrics = parse_exposition(text)

    assert len(metrics) == 1
    assert metrics.get("node_load1") == pytest.approx(0.25)


def test_parse_skips_unparseable_lines():
    text = (
        "node_load1\n"
        'node_cpu_scaling_frequency_hertz{cpu="0"} 1.2e+09\n'
        'node_cpu_scaling_frequency_hertz{cpu="3"} 1.2e+09x\n'
        "node_memory_MemTotal_bytes 4e+09\n"
    )
    metrics = parse_exposition(text)

    assert len(metrics) == 2
    assert metrics.get("node_cpu_scaling_frequency_hertz", cpu="0") == pytest.approx(1.2e9)
    assert metrics.get("node_cpu_scaling_frequency_hertz", cpu="3") is None
    assert metrics.get("node_memory_MemTotal_bytes") == pytest.approx(4.0e9)


def test_parse_text_without_samples_is_empty():
    assert len(parse_exposition("<html><body>502 Bad Gateway</body></html>\n")) == 0
    assert len(parse_exposition("")) == 0
