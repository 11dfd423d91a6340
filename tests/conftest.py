import pytest
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional

from footage_analyzer.models import MediaRecord

MEDIAPRO_NS = "http://xmlns.sony.net/pro/metadata/mediaprofile"


def write_mediapro(folder: Path, serial: Optional[str], model: Optional[str],
                   clips: Iterable[str], proxies: Iterable[str] = ()) -> Path:
    """Writes a MEDIAPRO.XML into folder listing clips (URIs relative to folder)."""
    folder.mkdir(parents=True, exist_ok=True)
    system_attrs = []
    if serial:
        system_attrs.append(f'systemId="{serial}"')
    if model:
        system_attrs.append(f'systemKind="{model}"')

    proxies = list(proxies)
    materials = []
    for i, clip in enumerate(clips):
        proxy = f'<Proxy uri="{proxies[i]}" type="MP4"/>' if i < len(proxies) else ""
        materials.append(f'<Material uri="{clip}" type="MP4">{proxy}</Material>')

    xml = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<MediaProfile xmlns="{MEDIAPRO_NS}" version="3.00">'
        f'<Properties><System {" ".join(system_attrs)}/></Properties>'
        f'<Contents>{"".join(materials)}</Contents>'
        '</MediaProfile>'
    )
    path = folder / "MEDIAPRO.XML"
    path.write_text(xml, encoding="utf-8")
    return path


def write_videos(folder: Path, names: Iterable[str], size: int = 10) -> list:
    folder.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in names:
        p = folder / name
        p.write_bytes(b"x" * size)
        paths.append(p)
    return paths


class FakeExtractor:
    """Stands in for MetadataExtractor; serials/models/errors keyed by file path."""

    def __init__(self, serials: Optional[Dict[Path, str]] = None,
                 models: Optional[Dict[Path, str]] = None,
                 errors: Optional[Dict[Path, str]] = None):
        self.serials = serials or {}
        self.models = models or {}
        self.errors = errors or {}

    def extract(self, path: Path) -> MediaRecord:
        if path in self.errors:
            return MediaRecord(path=path, file_name=path.name, extraction_error=self.errors[path])
        return MediaRecord(
            path=path,
            file_name=path.name,
            embedded_serial=self.serials.get(path),
            embedded_model=self.models.get(path),
            created=datetime(2024, 5, 1, 10, 0, 0),
            size_bytes=path.stat().st_size,
            format=path.suffix.lstrip('.').upper(),
        )


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def two_card_tree(tmp_path):
    """
    root/card1: MEDIAPRO for S1 listing 3 clips
    root/card2: MEDIAPRO for S2 listing 2 clips
    root/card3: one clip with only an embedded serial (S3)
    """
    root = tmp_path / "shoot"
    card1 = root / "card1"
    card2 = root / "card2"
    card3 = root / "card3"

    c1 = ["C0001.MP4", "C0002.MP4", "C0003.MP4"]
    c2 = ["C0001.MP4", "C0002.MP4"]
    write_mediapro(card1, "S1", "ILME-FX6", [f"./{n}" for n in c1])
    write_mediapro(card2, "S2", "ILCE-7SM3", [f"./{n}" for n in c2])
    write_videos(card1, c1, size=100)
    write_videos(card2, c2, size=200)
    extra = write_videos(card3, ["X0001.MP4"], size=300)[0]

    return root, FakeExtractor(serials={extra: "S3"}, models={extra: "FX3"})
