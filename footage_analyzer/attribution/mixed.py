from typing import Dict, List, Sequence, Set
from pathlib import Path

from ..models import MediaRecord, MixedFolderReport


def find_mixed_folders(records: Sequence[MediaRecord]) -> List[MixedFolderReport]:
    """
    Reports folders holding attributed files from two or more cameras.
    Unattributed files never make a folder mixed.
    Expects records already attributed by group_by_camera (camera_serial set).
    """
    folder_map: Dict[Path, Set[str]] = {}
    for rec in records:
        if not rec.camera_serial:
            continue
        folder_map.setdefault(rec.path.parent, set()).add(rec.camera_serial)

    return [
        MixedFolderReport(folder=folder, camera_serials=serials)
        for folder, serials in folder_map.items()
        if len(serials) > 1
    ]
