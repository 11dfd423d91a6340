import base64
import hashlib
import io
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterator, Optional

from PIL import Image

from .. import config


class ThumbnailLocator:
    """
    Finds the camera-written thumbnail for a clip, or grabs a frame with ffmpeg.
    Display data only: every failure returns None.
    """

    def __init__(self, cache_dir: Path = config.THUMBNAIL_CACHE_DIR, size=config.THUMBNAIL_SIZE):
        self.cache_dir = cache_dir
        self.size = size

    def find_or_generate(self, video_path: Path) -> Optional[str]:
        try:
            existing = self.find_existing(video_path)
            if existing:
                return self._to_data_uri(existing)

            generated = self.generate(video_path)
            if generated:
                return self._to_data_uri(generated)
        except Exception as e:
            logging.debug(f"Thumbnail lookup failed for {video_path}: {e}")
        return None

    def find_existing(self, video_path: Path) -> Optional[Path]:
        for candidate in self._candidates(video_path):
            if candidate.is_file():
                return candidate
        return None

    def _candidates(self, video_path: Path) -> Iterator[Path]:
        stems = [video_path.stem]
        # Proxies (C0001S03.MP4) share the main clip's thumbnail
        if video_path.stem.endswith(config.PROXY_SUFFIX):
            stems.append(video_path.stem[:-len(config.PROXY_SUFFIX)])

        for rel in config.THUMBNAIL_SEARCH_DIRS:
            folder = video_path.parent / rel
            for stem in stems:
                for suffix in config.THUMBNAIL_SUFFIXES:
                    for ext in config.THUMBNAIL_EXTS:
                        yield folder / f"{stem}{suffix}{ext}"

    def generate(self, video_path: Path) -> Optional[Path]:
        """Grabs one frame into the cache dir. Reuses an earlier grab of the same file."""
        # Cards reuse clip names (C0001.MP4), so key the cache on the full path
        digest = hashlib.sha1(str(video_path.resolve()).encode('utf-8')).hexdigest()[:12]
        output = self.cache_dir / f"{video_path.stem}_{digest}_thumb.jpg"
        if output.exists():
            return output

        if shutil.which("ffmpeg") is None:
            logging.debug("ffmpeg not found on PATH; skipping thumbnail generation.")
            return None

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        width, height = self.size
        cmd = [
            "ffmpeg", "-y", "-v", "quiet",
            "-ss", str(config.THUMBNAIL_SEEK_SEC),
            "-i", str(video_path),
            "-frames:v", "1",
            "-vf", f"scale={width}:{height}",
            str(output),
        ]
        logging.debug(f"Generating thumbnail for: {video_path.name}")
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, subprocess.CalledProcessError) as e:
            logging.debug(f"Error generating thumbnail for {video_path}: {e}")
            return None
        return output if output.exists() else None

    def _to_data_uri(self, image_path: Path) -> str:
        with Image.open(image_path) as im:
            im = im.convert("RGB")
            im.thumbnail(self.size)
            buf = io.BytesIO()
            im.save(buf, format="JPEG")
        return f"data:image/jpeg;base64,{base64.b64encode(buf.getvalue()).decode('ascii')}"
