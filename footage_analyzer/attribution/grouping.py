import logging
from typing import Dict, List, Sequence, Tuple

from .. import config
from ..models import AnalysisStats, CameraGroup, IdentityRegistry, MediaRecord
from .resolver import METHOD_EMBEDDED, resolve


def group_by_camera(records: Sequence[MediaRecord],
                    registry: IdentityRegistry) -> Tuple[List[CameraGroup], List[MediaRecord]]:
    """
    Attributes every record and folds it into its camera's group.
    Groups come out in first-attribution order, files in input order.
    Records are annotated in place with camera_serial/camera_model/attribution_method.
    """
    cameras: Dict[str, CameraGroup] = {}
    unknown: List[MediaRecord] = []

    for rec in records:
        serial, model, method = resolve(rec, registry)
        if not serial:
            unknown.append(rec)
            continue

        rec.camera_serial = serial
        rec.camera_model = model
        rec.attribution_method = method
        if method != METHOD_EMBEDDED:
            logging.debug(f"Matched {rec.file_name} to camera {serial} via {method}")

        group = cameras.get(serial)
        if group is None:
            group = CameraGroup(id=serial, model=model or config.UNKNOWN_MODEL)
            cameras[serial] = group
        group.add(rec)

    return list(cameras.values()), unknown


def format_label(record: MediaRecord) -> str:
    if record.format:
        return record.format
    ext = record.path.suffix.lstrip('.').upper()
    return ext or "UNKNOWN"


def calculate_statistics(records: Sequence[MediaRecord]) -> AnalysisStats:
    """Totals over all records, attributed or not."""
    stats = AnalysisStats(total_files=len(records))
    for rec in records:
        stats.total_size_bytes += rec.size_bytes or 0
        fmt = format_label(rec)
        stats.format_distribution[fmt] = stats.format_distribution.get(fmt, 0) + 1
    return stats
