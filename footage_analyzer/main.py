import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from . import config
from .core import FootageAnalyzerApp
from .exceptions import AnalysisError
from .models import AnalysisResult, ProgressEvent
from .reporting import ReportGenerator


def setup_logging(log_file: Optional[Path], verbose: bool):
    """Sets up logging to the console and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Footage Analyzer: attribute video files to the cameras that shot them")

    p.add_argument("src", type=Path, help="Folder containing card folders")

    p.add_argument("--csv", type=Path, default=None, help="Write a per-file CSV report of attributed files")
    p.add_argument("--unknown-csv", type=Path, default=None, help="Write a CSV of files with no camera identity")
    p.add_argument("--json", type=Path, default=None, help="Write the full result as JSON")
    p.add_argument("--workers", type=int, default=config.DEFAULT_MAX_WORKERS,
                   help="Parallel workers for metadata extraction")
    p.add_argument("--no-thumbnails", action="store_true", help="Skip thumbnail lookup/generation")
    p.add_argument("--conflict-policy", choices=config.CONFLICT_POLICIES, default=config.CONFLICT_POLICY,
                   help="Which descriptor wins when two claim the same clip")
    p.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)


def _format_size(n: int) -> str:
    size = float(n)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def print_summary(result: AnalysisResult):
    stats = result.stats
    print(f"\nCameras: {len(result.cameras)}")
    for cam in result.cameras:
        print(f"  {cam.id:<20} {cam.model:<20} {len(cam.files):>6} files  {_format_size(cam.total_size_bytes)}")
    print(f"Total files: {stats.total_files} ({_format_size(stats.total_size_bytes)})")
    print(f"Unknown files: {len(result.unknown_files)}")
    if stats.format_distribution:
        formats = ", ".join(f"{k}: {v}" for k, v in sorted(stats.format_distribution.items()))
        print(f"Formats: {formats}")
    if result.mixed_folders:
        print(f"Mixed folders: {len(result.mixed_folders)}")
        for m in result.mixed_folders:
            print(f"  {m.folder}: {', '.join(sorted(m.camera_serials))}")


def main(argv=None):
    args = parse_args(argv)
    src_root = args.src.resolve()

    setup_logging(args.log_file, args.verbose)
    logging.info("=== Footage Analyzer Started ===")
    logging.info(f"Source: {src_root}")

    app = FootageAnalyzerApp(
        max_workers=args.workers,
        thumbnails=not args.no_thumbnails,
        conflict_policy=args.conflict_policy,
    )

    with tqdm(total=100, desc="Analyzing", unit="%") as bar:
        def on_progress(event: ProgressEvent):
            bar.set_description(event.message)
            bar.update(event.percent - bar.n)

        try:
            result = app.analyze(src_root, on_progress)
        except KeyboardInterrupt:
            logging.warning("Operation cancelled by user.")
            sys.exit(1)
        except AnalysisError as e:
            logging.error(f"Analysis failed: {e}")
            sys.exit(1)

    reporter = ReportGenerator(result)
    if args.csv:
        reporter.write_csv(args.csv)
    if args.unknown_csv:
        reporter.write_unknown_csv(args.unknown_csv)
    if args.json:
        reporter.write_json(args.json)

    print_summary(result)


if __name__ == "__main__":
    main()
