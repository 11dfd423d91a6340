import csv
import json
import pytest
from datetime import datetime

from footage_analyzer.models import (
    AnalysisResult, AnalysisStats, CameraGroup, MediaRecord, MixedFolderReport,
)
from footage_analyzer.reporting import ReportGenerator


@pytest.fixture
def result(tmp_path):
    dt = datetime(2024, 5, 1, 10, 0, 0)
    a1 = MediaRecord(path=tmp_path / "card1" / "C0001.MP4", file_name="C0001.MP4", created=dt,
                     size_bytes=100, format="MP4", camera_serial="S1", camera_model="FX6",
                     attribution_method="sidecar", thumbnail="data:image/jpeg;base64,AAAA")
    a2 = MediaRecord(path=tmp_path / "card1" / "C0002.MP4", file_name="C0002.MP4", created=dt,
                     size_bytes=50, format="MP4", camera_serial="S1", camera_model="FX6",
                     resolution=(3840, 2160))
    b1 = MediaRecord(path=tmp_path / "card2" / "C0001.MXF", file_name="C0001.MXF", created=dt,
                     size_bytes=10, format="MXF", embedded_serial="S2", camera_serial="S2",
                     attribution_method="embedded")
    bad = MediaRecord(path=tmp_path / "loose" / "bad.MP4", file_name="bad.MP4", extraction_error="boom")

    cam1 = CameraGroup(id="S1", model="FX6")
    cam1.add(a1)
    cam1.add(a2)
    cam2 = CameraGroup(id="S2", model="Unknown Model")
    cam2.add(b1)

    return AnalysisResult(
        cameras=[cam1, cam2],
        unknown_files=[bad],
        mixed_folders=[MixedFolderReport(folder=tmp_path / "card1", camera_serials={"S2", "S1"})],
        stats=AnalysisStats(total_files=4, total_size_bytes=160, format_distribution={"MP4": 3, "MXF": 1}),
    )


def test_rows_project_camera_file_pairs(result):
    rows = list(ReportGenerator(result).iter_rows())

    assert [(r["cameraId"], r["fileName"]) for r in rows] == [
        ("S1", "C0001.MP4"), ("S1", "C0002.MP4"), ("S2", "C0001.MXF"),
    ]
    assert rows[0] == {
        "cameraId": "S1",
        "model": "FX6",
        "fileName": "C0001.MP4",
        "path": str(result.cameras[0].files[0].path),
        "sizeBytes": 100,
        "created": "2024-05-01T10:00:00",
        "format": "MP4",
    }


def test_write_csv(result, tmp_path):
    out = tmp_path / "report.csv"
    count = ReportGenerator(result).write_csv(out)

    with open(out, "r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert count == 3
    assert list(rows[0].keys()) == ["Camera ID", "Model", "File Name", "Path", "Size", "Timestamp", "Format"]
    assert rows[2]["Camera ID"] == "S2"
    assert rows[2]["Format"] == "MXF"
    assert not any("bad.MP4" in r["File Name"] for r in rows)


def test_write_unknown_csv(result, tmp_path):
    out = tmp_path / "unknown.csv"
    assert ReportGenerator(result).write_unknown_csv(out) == 1

    with open(out, "r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["File Name"] == "bad.MP4"
    assert rows[0]["Error"] == "boom"
    assert rows[0]["Size"] == "0"


def test_json_report(result, tmp_path):
    out = tmp_path / "result.json"
    ReportGenerator(result).write_json(out)
    data = json.loads(out.read_text(encoding="utf-8"))

    assert [c["id"] for c in data["cameras"]] == ["S1", "S2"]
    assert data["cameras"][0]["totalSizeBytes"] == 150
    assert data["cameras"][0]["files"][1]["resolution"] == [3840, 2160]
    assert "thumbnail" not in data["cameras"][0]["files"][0]
    assert data["unknownFiles"][0]["error"] == "boom"
    assert data["mixedFolders"][0]["cameras"] == ["S1", "S2"]
    assert data["stats"] == {"totalFiles": 4, "totalSizeBytes": 160, "formatDistribution": {"MP4": 3, "MXF": 1}}


def test_dict_with_thumbnails(result):
    data = ReportGenerator(result).to_dict(include_thumbnails=True)
    assert data["cameras"][0]["files"][0]["thumbnail"].startswith("data:image/jpeg")
