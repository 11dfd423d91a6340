import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterator, List, Optional, Set

from . import config
from .attribution.grouping import calculate_statistics, group_by_camera
from .attribution.mixed import find_mixed_folders
from .exceptions import AnalysisError, FootageAnalyzerError
from .metadata.extract import MetadataExtractor
from .metadata.thumbnail import ThumbnailLocator
from .models import (
    PHASE_DONE, PHASE_GROUPING, PHASE_METADATA_EXTRACTION, PHASE_MIXED_DETECTION,
    PHASE_SIDECAR_SCAN, PHASE_VIDEO_DISCOVERY,
    AnalysisResult, MediaRecord, ProgressEvent,
)
from .progress import EventChannel, ProgressCallback, ProgressReporter
from .scanning.filesystem import DiskScanner
from .sidecar.parser import SidecarParser
from .sidecar.registry import RegistryBuilder


class FootageAnalyzerApp:
    def __init__(self,
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 thumbnails: bool = True,
                 conflict_policy: str = config.CONFLICT_POLICY,
                 skip_dirs: Optional[Set[Path]] = None,
                 extractor: Optional[MetadataExtractor] = None,
                 thumbnailer: Optional[ThumbnailLocator] = None):
        self.max_workers = max_workers
        self.scanner = DiskScanner(skip_dirs)
        self.parser = SidecarParser()
        self.registry_builder = RegistryBuilder(conflict_policy)
        self.extractor = extractor or MetadataExtractor()
        self.thumbnailer = (thumbnailer or ThumbnailLocator()) if thumbnails else None

    def analyze(self, root: Path, on_progress: Optional[ProgressCallback] = None) -> AnalysisResult:
        """
        Executes the analysis pipeline.
        1. Parse descriptors & build the camera registry
        2. Discover videos
        3. Extract embedded metadata (parallel, order preserved)
        4. Attribute & group
        5. Detect mixed folders

        Raises AnalysisError only; per-file problems end up in the result.
        """
        try:
            return self._analyze(Path(root), ProgressReporter(on_progress))
        except AnalysisError:
            raise
        except (FootageAnalyzerError, OSError) as e:
            raise AnalysisError(f"Analysis of {root} failed: {e}") from e

    def _analyze(self, root: Path, progress: ProgressReporter) -> AnalysisResult:
        logging.info(f"Starting analysis of: {root}")
        self.scanner.ensure_readable(root)

        # --- Step 1: Descriptors ---
        progress.emit(PHASE_SIDECAR_SCAN, "Scanning XML files...", config.PROGRESS_SIDECAR_SCAN)
        sidecars = self.scanner.find_sidecars(root)
        logging.info(f"Found {len(sidecars)} XML files total")
        identities = self.parser.parse_all(sidecars)
        registry = self.registry_builder.build(identities)

        # --- Step 2: Discovery ---
        progress.emit(PHASE_VIDEO_DISCOVERY, "Finding video files...", config.PROGRESS_VIDEO_DISCOVERY)
        videos = self.scanner.find_videos(root)
        logging.info(f"Found {len(videos)} video files")

        # --- Step 3: Extraction ---
        progress.emit(PHASE_METADATA_EXTRACTION, "Extracting metadata...", config.PROGRESS_EXTRACTION_START)
        records = self._extract_all(videos, progress)

        # --- Step 4: Grouping ---
        progress.emit(PHASE_GROUPING, "Grouping files...", config.PROGRESS_GROUPING)
        cameras, unknown = group_by_camera(records, registry)
        stats = calculate_statistics(records)

        # --- Step 5: Mixed folders ---
        progress.emit(PHASE_MIXED_DETECTION, "Checking for mixed folders...", config.PROGRESS_MIXED_DETECTION)
        mixed = find_mixed_folders(records)

        logging.info("Analysis complete!")
        logging.info(f"   Cameras: {len(cameras)}")
        logging.info(f"   Total files: {stats.total_files}")
        logging.info(f"   Unknown files: {len(unknown)}")
        logging.info(f"   Mixed folders: {len(mixed)}")
        progress.emit(PHASE_DONE, "Analysis complete", config.PROGRESS_DONE)

        return AnalysisResult(cameras=cameras, unknown_files=unknown, mixed_folders=mixed, stats=stats)

    def _extract_all(self, videos: List[Path], progress: ProgressReporter) -> List[MediaRecord]:
        """
        Produces exactly one MediaRecord per video, in discovery order,
        regardless of which worker finishes first.
        """
        total = len(videos)
        records: List[Optional[MediaRecord]] = [None] * total
        span = config.PROGRESS_EXTRACTION_END - config.PROGRESS_EXTRACTION_START

        def report(done: int, path: Path):
            percent = config.PROGRESS_EXTRACTION_START + (done / total) * span
            progress.emit(PHASE_METADATA_EXTRACTION, f"Processing {done}/{total}", percent, current_item=path)

        if self.max_workers <= 1:
            for idx, path in enumerate(videos):
                records[idx] = self._process_single_file(path)
                report(idx + 1, path)
            return records

        logging.info(f"Parallel extraction: {total} files, {self.max_workers} workers")
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(self._process_single_file, path): idx
                for idx, path in enumerate(videos)
            }
            for done, future in enumerate(as_completed(future_to_index), start=1):
                idx = future_to_index[future]
                path = videos[idx]
                records[idx] = future.result()
                report(done, path)

        return records

    def _process_single_file(self, path: Path) -> MediaRecord:
        """Never raises: a crashing extractor still yields an error record for the file."""
        try:
            record = self.extractor.extract(path)
        except Exception as e:
            logging.error(f"Failed to process {path}: {e}")
            return MediaRecord(path=path, file_name=path.name, extraction_error=str(e))
        if self.thumbnailer:
            record.thumbnail = self.thumbnailer.find_or_generate(path)
        return record


class AnalysisRun:
    """
    A pipeline run on a background worker, consumed as a stream of ProgressEvents.

        run = start_analysis(root)
        for event in run.events():
            ...
        result = run.result()
    """

    def __init__(self, app: FootageAnalyzerApp, root: Path):
        self._channel = EventChannel()
        self._executor = ThreadPoolExecutor(max_workers=1)
        self._future = self._executor.submit(self._run, app, root)
        self._executor.shutdown(wait=False)

    def _run(self, app: FootageAnalyzerApp, root: Path) -> AnalysisResult:
        try:
            return app.analyze(root, on_progress=self._channel.put)
        finally:
            self._channel.close()

    def events(self) -> Iterator[ProgressEvent]:
        return iter(self._channel)

    def result(self, timeout: Optional[float] = None) -> AnalysisResult:
        return self._future.result(timeout)


def run_analysis(root: Path, on_progress: Optional[ProgressCallback] = None, **options) -> AnalysisResult:
    return FootageAnalyzerApp(**options).analyze(root, on_progress)


def start_analysis(root: Path, **options) -> AnalysisRun:
    return AnalysisRun(FootageAnalyzerApp(**options), Path(root))
