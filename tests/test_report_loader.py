"""Tests for ncu_roofline.profiler.report_loader."""

import pytest

from ncu_roofline.profiler.metric_extractor import MetricExtractor
from ncu_roofline.profiler.report_loader import load_raw_records

_NCU_RAW_CSV = (
    '"ID","Kernel Name","gpu__time_duration.avg","dram__bytes.sum.per_second",'
    '"smsp__inst_executed_pipe_tensor.sum.per_cycle_elapsed","gpc__cycles_elapsed.sum"\n'
    '"","","second","Tbyte/second","inst/cycle","cycle"\n'
    '"0","ampere_sgemm_128x64_nn","0.5","1.2","1,024","1,000,000"\n'
    '"1","vectorized_elementwise_kernel","0.002","0.8","0.5","2,000,000"\n'
)


class TestLoadRawRecords:
    def test_rows_returned_verbatim(self, tmp_path):
        path = tmp_path / "ncu_report_raw.csv"
        path.write_text(_NCU_RAW_CSV, encoding="utf-8")

        rows = load_raw_records(path)
        assert len(rows) == 3
        assert rows[0]["dram__bytes.sum.per_second"] == "Tbyte/second"
        assert rows[1]["Kernel Name"] == "ampere_sgemm_128x64_nn"
        assert rows[1]["gpc__cycles_elapsed.sum"] == "1,000,000"

    def test_unit_row_dropped_by_extractor(self, tmp_path):
        path = tmp_path / "ncu_report_raw.csv"
        path.write_text(_NCU_RAW_CSV, encoding="utf-8")

        result = MetricExtractor().extract(load_raw_records(str(path)))
        assert [m.id for m in result.metrics] == ["0", "1"]
        assert result.rejected_records == 1

    def test_byte_order_mark(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_text(_NCU_RAW_CSV, encoding="utf-8-sig")

        rows = load_raw_records(path)
        assert "ID" in rows[0]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_raw_records(tmp_path / "missing.csv")

    def test_directory(self, tmp_path):
        with pytest.raises(ValueError, match="Not a file"):
            load_raw_records(tmp_path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="no header row"):
            load_raw_records(path)
