import csv
import io

import pytest

from poselog.errors import EmptyDatasetError, SchemaMismatchError
from poselog.io.csv_writer import export_csv, write_csv

ROWS = [
    {"time": "2026-10-19T12:00:00.000+02:00", "left_elbow_angle": 90, "left_knee_x": 12.5},
    {"time": "2026-10-19T12:00:00.033+02:00", "left_elbow_angle": None, "left_knee_x": 13.0},
    {"time": "2026-10-19T12:00:00.066+02:00", "left_elbow_angle": 91, "left_knee_x": None},
]


def test_header_then_rows_in_key_order():
    lines = export_csv(ROWS).decode("utf-8").splitlines()
    assert lines[0] == "time,left_elbow_angle,left_knee_x"
    assert lines[1] == "2026-10-19T12:00:00.000+02:00,90,12.5"
    assert lines[2] == "2026-10-19T12:00:00.033+02:00,,13.0"
    assert len(lines) == 1 + len(ROWS)


def test_null_token_is_configurable():
    lines = export_csv(ROWS, null_token="null").decode("utf-8").splitlines()
    assert lines[3].endswith(",91,null")


def test_round_trip_preserves_values():
    parsed = list(csv.DictReader(io.StringIO(export_csv(ROWS).decode("utf-8"))))
    assert len(parsed) == len(ROWS)
    for src, got in zip(ROWS, parsed):
        assert list(got) == list(src)
        for k, v in src.items():
            if v is None:
                assert got[k] == ""
            elif isinstance(v, str):
                assert got[k] == v
            else:
                assert float(got[k]) == pytest.approx(v)


def test_empty_dataset_rejected():
    with pytest.raises(EmptyDatasetError):
        export_csv([])


def test_divergent_schema_rejected():
    rows = [ROWS[0], {"time": "t", "left_knee_x": 1.0, "left_elbow_angle": 3}]
    with pytest.raises(SchemaMismatchError):
        export_csv(rows)


def test_write_csv(tmp_path):
    path = write_csv(str(tmp_path / "data.csv"), ROWS)
    assert (tmp_path / "data.csv").read_bytes() == export_csv(ROWS)
    assert path.endswith("data.csv")
