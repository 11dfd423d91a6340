from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

# Pipeline phases, in the order a run passes through them
PHASE_SIDECAR_SCAN = "sidecar_scan"
PHASE_VIDEO_DISCOVERY = "video_discovery"
PHASE_METADATA_EXTRACTION = "metadata_extraction"
PHASE_GROUPING = "grouping"
PHASE_MIXED_DETECTION = "mixed_detection"
PHASE_DONE = "done"

PHASES = (
    PHASE_SIDECAR_SCAN,
    PHASE_VIDEO_DISCOVERY,
    PHASE_METADATA_EXTRACTION,
    PHASE_GROUPING,
    PHASE_MIXED_DETECTION,
    PHASE_DONE,
)


@dataclass
class CameraIdentityRecord:
    """
    Camera identity declared by one descriptor (sidecar) file.
    """
    serial_number: str
    model: str
    source_path: Path
    video_paths: List[Path] = field(default_factory=list)


@dataclass
class MediaRecord:
    """
    Represents a video file found during a scan.
    """
    path: Path
    file_name: str

    # Embedded metadata (read from the container itself)
    embedded_serial: Optional[str] = None
    embedded_model: Optional[str] = None
    created: Optional[datetime] = None
    size_bytes: Optional[int] = None
    duration_sec: Optional[float] = None
    format: Optional[str] = None
    resolution: Optional[Tuple[int, int]] = None
    extraction_error: Optional[str] = None

    # Display only, never used for attribution
    thumbnail: Optional[str] = None

    # Populated by attribution
    camera_serial: Optional[str] = None
    camera_model: Optional[str] = None
    attribution_method: Optional[str] = None   # embedded/sidecar


@dataclass
class IdentityRegistry:
    serial_index: Dict[str, CameraIdentityRecord] = field(default_factory=dict)
    # canonical path key -> serial
    path_index: Dict[str, str] = field(default_factory=dict)
    # Human readable description of every collision settled while building
    conflicts: List[str] = field(default_factory=list)

    def model_for(self, serial: str) -> Optional[str]:
        rec = self.serial_index.get(serial)
        return rec.model if rec else None


@dataclass
class CameraGroup:
    id: str
    model: str
    files: List[MediaRecord] = field(default_factory=list)
    total_size_bytes: int = 0

    def add(self, record: MediaRecord):
        self.files.append(record)
        self.total_size_bytes += record.size_bytes or 0


@dataclass
class MixedFolderReport:
    folder: Path
    camera_serials: Set[str]


@dataclass
class AnalysisStats:
    total_files: int = 0
    total_size_bytes: int = 0
    format_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass
class AnalysisResult:
    cameras: List[CameraGroup]
    unknown_files: List[MediaRecord]
    mixed_folders: List[MixedFolderReport]
    stats: AnalysisStats


@dataclass
class ProgressEvent:
    phase: str
    message: str
    percent: int
    current_item: Optional[Path] = None
