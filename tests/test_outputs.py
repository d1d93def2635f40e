from __future__ import annotations

from io import BytesIO

from openpyxl import load_workbook

from cookie_recon.engine import build_unified_dataset
from cookie_recon.outputs import (
    read_unified_json,
    scouts_frame,
    transfers_frame,
    warnings_frame,
    write_unified_json,
    write_unified_xlsx,
)

from .fixtures import BUILD_TIME


def test_unified_json_reads_back_equal(season, tmp_path):
    dataset = build_unified_dataset(season, build_time=BUILD_TIME)
    path = write_unified_json(dataset, tmp_path / "out" / "unified.json")
    assert path.exists()
    assert read_unified_json(path) == dataset.to_dict()


def test_frames(anomalies):
    dataset = build_unified_dataset(anomalies, build_time=BUILD_TIME)

    scouts = scouts_frame(dataset)
    assert "Troop3990 Site" not in set(scouts["Scout"])
    assert {"Ann Lee", "Bea Ruiz"} <= set(scouts["Scout"])

    transfers = transfers_frame(dataset)
    assert "XYZZY" not in set(transfers["Type"])
    assert set(transfers["Bucket"]) == {"C2T", "T2T Out", "T2G", "G2T"}

    warnings = warnings_frame(dataset)
    assert len(warnings) == len(dataset.warnings)


def test_workbook_sheets(anomalies):
    dataset = build_unified_dataset(anomalies, build_time=BUILD_TIME)
    buffer = BytesIO()
    write_unified_xlsx(buffer, dataset)

    wb = load_workbook(buffer)
    assert wb.sheetnames == ["Summary", "Scouts", "Transfers", "Warnings"]
    assert wb["Summary"]["A1"].value == "Troop Cookie Sale Summary"
    assert wb["Scouts"]["A1"].value == "Scout"
    assert wb["Warnings"].max_row == len(dataset.warnings) + 1
    transfer_rows = sum(
        len(bucket)
        for bucket in (
            dataset.transfer_breakdowns.c2t,
            dataset.transfer_breakdowns.t2t_out,
            dataset.transfer_breakdowns.t2g,
            dataset.transfer_breakdowns.g2t,
        )
    )
    assert wb["Transfers"].max_row == transfer_rows + 1


def test_empty_warnings_sheet_says_so(scenario, tmp_path):
    dataset = build_unified_dataset(scenario, build_time=BUILD_TIME)
    path = tmp_path / "unified.xlsx"
    write_unified_xlsx(path, dataset)

    ws = load_workbook(path)["Warnings"]
    assert ws["A1"].value == "Type"
    assert ws["A2"].value == "No warnings"
