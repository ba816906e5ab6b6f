from guest_agent.config import Settings
from guest_agent.models.cpu import CpuSample
from guest_agent.services.capabilities import detect_capabilities
from guest_agent.services.cpu_stats import (
    format_state_line,
    parse_cpu_line,
    read_cpu_sample,
)

PROC_STAT = (
    "cpu  4705 356 584 3699176 23 0 13 7 0 0\n"
    "cpu0 1393280 32966 572056 13343292 6130 0 17875 0 0 0\n"
    "intr 1462898\n"
)


def test_parse_kernel_row():
    sample = parse_cpu_line("cpu  4705 356 584 3699176 23 0 13 7 2 1")

    assert sample.user == 4705
    assert sample.nice == 356
    assert sample.system == 584
    assert sample.idle == 3699176
    assert sample.iowait == 23
    assert sample.irq == 0
    assert sample.softirq == 13
    assert sample.steal == 7
    assert sample.guest == 2
    assert sample.guest_nice == 1
    assert sample.active == 4705 + 356 + 584 + 0 + 13 + 7
    assert sample.idle_total == 3699176 + 23


def test_parse_substitutes_zero_for_bad_fields():
    """Short rows and garbage tokens must not abort the snapshot."""
    sample = parse_cpu_line("cpu 10 x 30 -5")

    assert sample.user == 10
    assert sample.nice == 0
    assert sample.system == 30
    assert sample.idle == 0
    assert sample.steal == 0


def test_parse_empty_line_is_zero():
    assert parse_cpu_line("") == CpuSample.zero()


def test_read_cpu_sample_uses_first_line(tmp_path):
    stat = tmp_path / "stat"
    stat.write_text(PROC_STAT)

    sample = read_cpu_sample(str(stat))
    assert sample.user == 4705
    assert sample.idle == 3699176


def test_read_cpu_sample_missing_file_is_zero(tmp_path):
    assert read_cpu_sample(str(tmp_path / "missing")) == CpuSample.zero()


def test_state_line_keeps_field_order():
    sample = CpuSample(
        user=1, nice=2, system=3, idle=4, iowait=5, irq=6, softirq=7, steal=8,
        guest=9, guest_nice=10,
    )
    assert format_state_line(sample) == "cpu 1 2 3 4 5 6 7 8\n"


def test_capabilities_with_counters(tmp_path):
    stat = tmp_path / "stat"
    stat.write_text(PROC_STAT)

    capabilities = detect_capabilities(Settings(proc_stat_path=str(stat)))
    assert capabilities.counters_available is True
    assert capabilities.enhanced_flag == "true"


def test_capabilities_without_counters(tmp_path):
    capabilities = detect_capabilities(Settings(proc_stat_path=str(tmp_path / "missing")))
    assert capabilities.counters_available is False
    assert capabilities.enhanced_flag == "false"


def test_capabilities_reject_foreign_file(tmp_path):
    stat = tmp_path / "stat"
    stat.write_text("intr 1462898\n")

    assert detect_capabilities(Settings(proc_stat_path=str(stat))).counters_available is False


def test_read_cpu_sample_with_invalid_utf8(tmp_path):
    stat = tmp_path / "stat"
    stat.write_bytes(b"\xff\xfe garbage\n")

    assert read_cpu_sample(str(stat)) == CpuSample.zero()


def test_capabilities_with_invalid_utf8(tmp_path):
    stat = tmp_path / "stat"
    stat.write_bytes(b"\xff\xfe garbage\n")

    assert detect_capabilities(Settings(proc_stat_path=str(stat))).counters_available is False
