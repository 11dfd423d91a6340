import base64
import io
import pytest
from pathlib import Path
from PIL import Image

import footage_analyzer.metadata.thumbnail as thumbnail_module
from footage_analyzer.metadata.thumbnail import ThumbnailLocator


def _write_jpeg(path: Path, size=(640, 360)):
    path.parent.mkdir(parents=True, exist_ok=True)
    with Image.new("RGB", size, color="blue") as im:
        im.save(path, format="JPEG")
    return path


def _decode(data_uri: str) -> Image.Image:
    prefix = "data:image/jpeg;base64,"
    assert data_uri.startswith(prefix)
    return Image.open(io.BytesIO(base64.b64decode(data_uri[len(prefix):])))


@pytest.fixture
def locator(tmp_path):
    return ThumbnailLocator(cache_dir=tmp_path / "cache")


def test_finds_camera_thumbnail_in_sibling_folder(tmp_path, locator):
    clip = tmp_path / "M4ROOT" / "CLIP" / "C0001.MP4"
    clip.parent.mkdir(parents=True)
    clip.write_bytes(b"v")
    thumb = _write_jpeg(tmp_path / "M4ROOT" / "THMBNL" / "C0001T01.JPG")

    assert locator.find_existing(clip).resolve() == thumb.resolve()

    with _decode(locator.find_or_generate(clip)) as im:
        assert im.size == (320, 180)


def test_proxy_uses_main_clip_thumbnail(tmp_path, locator):
    proxy = tmp_path / "M4ROOT" / "SUB" / "C0001S03.MP4"
    proxy.parent.mkdir(parents=True)
    proxy.write_bytes(b"v")
    thumb = _write_jpeg(tmp_path / "M4ROOT" / "THMBNL" / "C0001T01.JPG")

    assert locator.find_existing(proxy).resolve() == thumb.resolve()


def test_thumbnail_beside_clip(tmp_path, locator):
    clip = tmp_path / "C0002.MP4"
    clip.write_bytes(b"v")
    thumb = _write_jpeg(tmp_path / "C0002.jpg", size=(100, 50))

    assert locator.find_existing(clip).resolve() == thumb.resolve()
    with _decode(locator.find_or_generate(clip)) as im:
        assert im.size == (100, 50)


def test_no_thumbnail_and_no_ffmpeg(monkeypatch, tmp_path, locator):
    monkeypatch.setattr(thumbnail_module.shutil, "which", lambda name: None)
    clip = tmp_path / "C0003.MP4"
    clip.write_bytes(b"v")

    assert locator.find_or_generate(clip) is None


def test_generated_thumbnail_is_reused(monkeypatch, tmp_path, locator):
    clip = tmp_path / "C0004.MP4"
    clip.write_bytes(b"v")
    calls = []

    def fake_run(cmd, check, stdout, stderr):
        calls.append(cmd)
        _write_jpeg(Path(cmd[-1]))

    monkeypatch.setattr(thumbnail_module.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(thumbnail_module.subprocess, "run", fake_run)

    first = locator.find_or_generate(clip)
    second = locator.find_or_generate(clip)

    assert first is not None and first == second
    assert len(calls) == 1
    assert calls[0][0] == "ffmpeg"


def test_unreadable_thumbnail_returns_none(tmp_path, locator):
    clip = tmp_path / "C0005.MP4"
    clip.write_bytes(b"v")
    (tmp_path / "C0005.JPG").write_bytes(b"not a jpeg")

    assert locator.find_or_generate(clip) is None
