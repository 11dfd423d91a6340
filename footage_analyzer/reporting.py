import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator

from .models import AnalysisResult, MediaRecord

ROW_FIELDS = ["cameraId", "model", "fileName", "path", "sizeBytes", "created", "format"]
CSV_HEADERS = ["Camera ID", "Model", "File Name", "Path", "Size", "Timestamp", "Format"]
UNKNOWN_HEADERS = ["File Name", "Path", "Size", "Timestamp", "Format", "Error"]


def _iso(record: MediaRecord) -> str:
    return record.created.isoformat() if record.created else ""


class ReportGenerator:
    def __init__(self, result: AnalysisResult):
        self.result = result

    def iter_rows(self) -> Iterator[Dict[str, Any]]:
        """One row per (camera, file), cameras in result order."""
        for cam in self.result.cameras:
            for rec in cam.files:
                yield {
                    "cameraId": cam.id,
                    "model": cam.model,
                    "fileName": rec.file_name,
                    "path": str(rec.path),
                    "sizeBytes": rec.size_bytes or 0,
                    "created": _iso(rec),
                    "format": rec.format or "",
                }

    def write_csv(self, output_csv: Path) -> int:
        count = 0
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADERS)
            for row in self.iter_rows():
                writer.writerow([row[k] for k in ROW_FIELDS])
                count += 1
        logging.info(f"Wrote {count} rows to {output_csv}")
        return count

    def write_unknown_csv(self, output_csv: Path) -> int:
        """Unattributed files, including those whose metadata could not be read."""
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(UNKNOWN_HEADERS)
            for rec in self.result.unknown_files:
                writer.writerow([
                    rec.file_name, str(rec.path), rec.size_bytes or 0,
                    _iso(rec), rec.format or "", rec.extraction_error or "",
                ])
        logging.info(f"Wrote {len(self.result.unknown_files)} unknown files to {output_csv}")
        return len(self.result.unknown_files)

    def to_dict(self, include_thumbnails: bool = False) -> Dict[str, Any]:
        """JSON-serializable view of the whole result."""
        def media(rec: MediaRecord) -> Dict[str, Any]:
            d = {
                "path": str(rec.path),
                "fileName": rec.file_name,
                "serialNumber": rec.camera_serial or rec.embedded_serial,
                "model": rec.camera_model or rec.embedded_model,
                "attribution": rec.attribution_method,
                "created": _iso(rec) or None,
                "sizeBytes": rec.size_bytes,
                "durationSeconds": rec.duration_sec,
                "format": rec.format,
                "resolution": list(rec.resolution) if rec.resolution else None,
                "error": rec.extraction_error,
            }
            if include_thumbnails:
                d["thumbnail"] = rec.thumbnail
            return d

        stats = self.result.stats
        return {
            "cameras": [
                {
                    "id": cam.id,
                    "model": cam.model,
                    "totalSizeBytes": cam.total_size_bytes,
                    "files": [media(r) for r in cam.files],
                }
                for cam in self.result.cameras
            ],
            "unknownFiles": [media(r) for r in self.result.unknown_files],
            "mixedFolders": [
                {"folder": str(m.folder), "cameras": sorted(m.camera_serials)}
                for m in self.result.mixed_folders
            ],
            "stats": {
                "totalFiles": stats.total_files,
                "totalSizeBytes": stats.total_size_bytes,
                "formatDistribution": dict(stats.format_distribution),
            },
        }

    def write_json(self, output_json: Path, include_thumbnails: bool = False):
        payload = self.to_dict(include_thumbnails)
        Path(output_json).write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logging.info(f"Wrote JSON report to {output_json}")
