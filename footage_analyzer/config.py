"""
Configuration constants for the footage analyzer.
"""
import tempfile
from pathlib import Path

# --- File Type Definitions ---
VIDEO_EXTS = {'.mp4', '.mov', '.mxf'}
SIDECAR_EXTS = {'.xml'}

# --- Camera Identity ---
UNKNOWN_MODEL = "Unknown Model"

# How registry collisions between descriptors are settled: 'last', 'first' or 'reject'
CONFLICT_POLICY = "last"
CONFLICT_POLICIES = ("last", "first", "reject")

# --- Progress ---
# Percent at which each phase starts. Extraction interpolates across its range.
PROGRESS_SIDECAR_SCAN = 0
PROGRESS_VIDEO_DISCOVERY = 10
PROGRESS_EXTRACTION_START = 20
PROGRESS_EXTRACTION_END = 80
PROGRESS_GROUPING = 85
PROGRESS_MIXED_DETECTION = 95
PROGRESS_DONE = 100

# --- Performance ---
# Bounded pool for per-file extraction (HDD-friendly default)
DEFAULT_MAX_WORKERS = 3

# --- Thumbnails ---
# Searched relative to the clip's folder (M4ROOT cards keep them in a THMBNL sibling)
THUMBNAIL_SEARCH_DIRS = [".", "../THMBNL", "../../THMBNL", "THMBNL"]
THUMBNAIL_SUFFIXES = ["", "T01"]
THUMBNAIL_EXTS = [".JPG", ".jpg"]
PROXY_SUFFIX = "S03"
THUMBNAIL_SIZE = (320, 180)
THUMBNAIL_SEEK_SEC = 1
THUMBNAIL_CACHE_DIR = Path(tempfile.gettempdir()) / "footage-analyzer-thumbs"
