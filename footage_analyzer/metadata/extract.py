import logging
import shutil
import subprocess
import json
from pathlib import Path
from datetime import datetime
from typing import Optional, Dict, Any, List

from ..exceptions import MetadataExtractionError
from ..models import MediaRecord

# Type hint 'Any' prevents Pylance from complaining about "None" having no attribute "parse"
MediaInfo: Any = None
try:
    from pymediainfo import MediaInfo
except ImportError:
    MediaInfo = None

# MediaInfo exposes vendor tags under varying names depending on the container
MEDIAINFO_SERIAL_FIELDS = ["serial_number", "device_serial_number", "camera_serial_number"]
MEDIAINFO_MODEL_FIELDS = ["device_model", "model", "performer"]
MEDIAINFO_DATE_FIELDS = ["recorded_date", "encoded_date", "tagged_date"]

EXIFTOOL_SERIAL_FIELDS = ["SerialNumber", "InternalSerialNumber", "DeviceSerialNo"]
EXIFTOOL_MODEL_FIELDS = ["Model", "CameraModelName", "DeviceModelName"]
EXIFTOOL_DATE_FIELDS = ["CreateDate", "CreationDate", "DateTimeOriginal", "MediaCreateDate"]

_exiftool_available: Optional[bool] = None


def check_exiftool_available() -> bool:
    """Result is cached after first call."""
    global _exiftool_available
    if _exiftool_available is None:
        _exiftool_available = shutil.which("exiftool") is not None
    return _exiftool_available


class MetadataExtractor:
    """
    Reads camera identity and technical metadata embedded in video files.

    Strategies:
      - 'pymediainfo' (fast wrapper), then
      - 'exiftool' (robust, requires system install) to fill whatever is still missing.
        Sony XAVC serials usually only come from here.
    """

    def extract(self, path: Path) -> MediaRecord:
        """
        Always returns a MediaRecord. If the file cannot be read by any
        strategy, the record carries extraction_error and nothing else.
        """
        try:
            stat_result = path.stat()
            data = self._extract_embedded(path)
        except (OSError, MetadataExtractionError) as e:
            logging.warning(f"Error extracting metadata for {path}: {e}")
            return MediaRecord(path=path, file_name=path.name, extraction_error=str(e))

        created = data['dt'] or datetime.fromtimestamp(stat_result.st_mtime)
        resolution = None
        if data['width'] and data['height']:
            resolution = (int(data['width']), int(data['height']))

        return MediaRecord(
            path=path,
            file_name=path.name,
            embedded_serial=data['serial'],
            embedded_model=data['model'],
            created=created,
            size_bytes=stat_result.st_size,
            duration_sec=data['duration'],
            format=data['format'] or path.suffix.lstrip('.').upper(),
            resolution=resolution,
        )

    def _extract_embedded(self, path: Path) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'serial': None, 'model': None, 'dt': None, 'duration': None,
            'format': None, 'width': None, 'height': None,
        }
        errors: List[str] = []
        attempted = 0

        # Strategy 1: MediaInfo (fastest, rarely has the serial)
        if MediaInfo is not None:
            attempted += 1
            try:
                self._merge(data, self._extract_mediainfo(path))
            except Exception as e:
                logging.debug(f"MediaInfo failed for {path}: {e}")
                errors.append(f"MediaInfo: {e}")

        # Strategy 2: ExifTool for anything still missing
        if (data['serial'] is None or data['dt'] is None) and check_exiftool_available():
            attempted += 1
            try:
                self._merge(data, self._extract_exiftool(path))
            except Exception as e:
                logging.debug(f"ExifTool failed for {path}: {e}")
                errors.append(f"ExifTool: {e}")

        if attempted == 0:
            raise MetadataExtractionError("No metadata tool available (install pymediainfo or exiftool)")
        if len(errors) == attempted:
            raise MetadataExtractionError("; ".join(errors))
        return data

    def _merge(self, data: Dict[str, Any], found: Dict[str, Any]):
        """Fills keys that are still empty; earlier strategies win."""
        for key, val in found.items():
            if data.get(key) is None and val not in (None, ""):
                data[key] = val

    # --- Internal Extraction Helpers ---

    def _extract_mediainfo(self, path: Path) -> Dict[str, Any]:
        """Parses video using pymediainfo."""
        mi = MediaInfo.parse(str(path))
        data: Dict[str, Any] = {}

        for track in mi.tracks:
            if track.track_type == "General":
                if getattr(track, "duration", None):
                    # MediaInfo duration is in milliseconds
                    data['duration'] = float(track.duration) / 1000.0

                for field in MEDIAINFO_DATE_FIELDS:
                    val = getattr(track, field, None)
                    if val:
                        dt = self._parse_flexible_date(str(val))
                        if dt:
                            data['dt'] = dt
                            break

                data['serial'] = self._first_attr(track, MEDIAINFO_SERIAL_FIELDS)
                data['model'] = self._first_attr(track, MEDIAINFO_MODEL_FIELDS)
                data['format'] = getattr(track, "format", None)

            elif track.track_type == "Video" and 'width' not in data:
                data['width'] = getattr(track, "width", None)
                data['height'] = getattr(track, "height", None)
        return data

    def _extract_exiftool(self, path: Path) -> Dict[str, Any]:
        """
        Wraps the 'exiftool' command line utility.
        Must be installed and on the system PATH.
        """
        # -j = JSON output
        # -n = No formatting (returns seconds as float, clean dates)
        cmd = ["exiftool", "-j", "-n", str(path)]
        out = subprocess.check_output(cmd, stderr=subprocess.DEVNULL, text=True)
        data_list = json.loads(out)

        data: Dict[str, Any] = {}
        if not data_list:
            return data

        tags = data_list[0]

        for field in EXIFTOOL_DATE_FIELDS:
            if tags.get(field):
                dt = self._parse_flexible_date(str(tags[field]))
                if dt:
                    data['dt'] = dt
                    break

        if tags.get("Duration"):
            try:
                data['duration'] = float(tags["Duration"])
            except ValueError:
                pass

        serial = next((tags[f] for f in EXIFTOOL_SERIAL_FIELDS if tags.get(f)), None)
        # Serials can come back as numbers under -n
        data['serial'] = str(serial).strip() if serial is not None else None
        data['model'] = next((str(tags[f]) for f in EXIFTOOL_MODEL_FIELDS if tags.get(f)), None)
        data['format'] = tags.get("FileType")
        data['width'] = tags.get("ImageWidth")
        data['height'] = tags.get("ImageHeight")
        return data

    def _first_attr(self, track, fields: List[str]) -> Optional[str]:
        for field in fields:
            val = getattr(track, field, None)
            if val not in (None, ""):
                return str(val).strip()
        return None

    def _parse_flexible_date(self, dt_str: str) -> Optional[datetime]:
        """
        Handles various date formats (ISO, UTC suffixes, Exiftool quirks).
        Returns a naive datetime object.
        """
        if not dt_str:
            return None

        clean = dt_str.replace("UTC", "").strip()

        # 1. ISO format (e.g. 2020-01-01T12:00:00)
        try:
            return datetime.fromisoformat(clean).replace(tzinfo=None)
        except ValueError:
            pass

        # 2. EXIF style "YYYY:MM:DD HH:MM:SS", possibly with sub-seconds or offset
        try:
            clean_exif = clean.replace(":", "-", 2)
            clean_exif = clean_exif.split(".")[0].split("+")[0]
            return datetime.strptime(clean_exif[:19], "%Y-%m-%d %H:%M:%S")
        except ValueError:
            pass

        return None
