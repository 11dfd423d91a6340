import os
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Iterable

from .. import config
from ..exceptions import SidecarParseError
from ..models import CameraIdentityRecord


@dataclass
class SidecarParseResult:
    """
    Outcome of inspecting one descriptor.

    schema is None when no known schema matched. record is None when the
    schema carries no usable camera identity.
    """
    source_path: Path
    schema: Optional[str] = None
    record: Optional[CameraIdentityRecord] = None
    # Clip references found, even when the schema yields no record
    video_paths: List[Path] = field(default_factory=list)


def _local(tag: str) -> str:
    """Strips the '{namespace}' prefix ElementTree puts on qualified tags."""
    return tag.rsplit('}', 1)[-1]


def _child(elem: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    if elem is None:
        return None
    for c in elem:
        if _local(c.tag) == name:
            return c
    return None


def _children(elem: Optional[ET.Element], name: str) -> List[ET.Element]:
    if elem is None:
        return []
    return [c for c in elem if _local(c.tag) == name]


def _field(elem: Optional[ET.Element], *names: str) -> Optional[str]:
    """
    Reads the first non-empty value among attributes or child elements named `names`.
    Cameras write the same field either way depending on firmware.
    """
    if elem is None:
        return None
    attrs = {_local(k): v for k, v in elem.attrib.items()}
    for name in names:
        val = attrs.get(name)
        if val and val.strip():
            return val.strip()
        child = _child(elem, name)
        if child is not None and child.text and child.text.strip():
            return child.text.strip()
    return None


def _resolve_uri(uri: str, base_dir: Path) -> Path:
    """Resolves a descriptor URI ('./Clip/C0001.MP4') against the descriptor's folder."""
    clean = uri.strip().replace('\\', '/')
    if clean.startswith('./'):
        clean = clean[2:]
    return Path(os.path.normpath(os.path.abspath(os.path.join(base_dir, clean))))


def _is_video_uri(uri: Optional[str]) -> bool:
    return bool(uri) and Path(uri.strip()).suffix.lower() in config.VIDEO_EXTS


class SidecarSchema:
    """One known descriptor layout, recognised by its top-level element."""
    name = "unknown"
    root_tag = ""

    def matches(self, root: ET.Element) -> bool:
        return _local(root.tag) == self.root_tag

    def extract(self, root: ET.Element, source_path: Path) -> SidecarParseResult:
        raise NotImplementedError


class MediaProfileSchema(SidecarSchema):
    """
    MEDIAPRO.XML: card-level profile. Identity in Properties/System,
    clips (and their proxies) listed under Contents/Material.
    """
    name = "MediaProfile"
    root_tag = "MediaProfile"

    def matches(self, root: ET.Element) -> bool:
        return super().matches(root) and _child(_child(root, "Properties"), "System") is not None

    def extract(self, root: ET.Element, source_path: Path) -> SidecarParseResult:
        system = _child(_child(root, "Properties"), "System")
        serial = _field(system, "systemId")
        model = _field(system, "systemKind")

        base_dir = source_path.parent
        videos = []
        for material in _children(_child(root, "Contents"), "Material"):
            uri = _field(material, "uri")
            if _is_video_uri(uri):
                videos.append(_resolve_uri(uri, base_dir))

            proxy_uri = _field(_child(material, "Proxy"), "uri")
            if _is_video_uri(proxy_uri):
                videos.append(_resolve_uri(proxy_uri, base_dir))

        result = SidecarParseResult(source_path, self.name, video_paths=videos)
        if serial:
            result.record = CameraIdentityRecord(
                serial_number=serial,
                model=model or config.UNKNOWN_MODEL,
                source_path=source_path,
                video_paths=videos,
            )
        logging.info(f"Found MediaProfile: Serial={serial}, Model={model}, Videos={len(videos)}")
        return result


class CueUpSchema(SidecarSchema):
    """CUEUP.XML: playback history. Clip references but no camera identity."""
    name = "CueUp"
    root_tag = "cueupinfo"

    def matches(self, root: ET.Element) -> bool:
        return super().matches(root) and bool(_children(_child(root, "history"), "clip"))

    def extract(self, root: ET.Element, source_path: Path) -> SidecarParseResult:
        videos = []
        for clip in _children(_child(root, "history"), "clip"):
            uri = _field(clip, "uri")
            if uri:
                videos.append(_resolve_uri(uri, source_path.parent))
        logging.info(f"Found CUEUP.XML with {len(videos)} clip references (no camera info)")
        return SidecarParseResult(source_path, self.name, video_paths=videos)


class DiscMetaSchema(SidecarSchema):
    """DISCMETA.XML: disc-level metadata only."""
    name = "DiscMeta"
    root_tag = "DiscMeta"

    def extract(self, root: ET.Element, source_path: Path) -> SidecarParseResult:
        logging.info("Found DISCMETA.XML (disc metadata only, skipping)")
        return SidecarParseResult(source_path, self.name)


class DeviceBlockSchema(SidecarSchema):
    """Per-clip metadata with a Device element carrying serial and model."""

    def __init__(self, root_tag: str):
        self.root_tag = root_tag
        self.name = root_tag

    def matches(self, root: ET.Element) -> bool:
        return super().matches(root) and _child(root, "Device") is not None

    def extract(self, root: ET.Element, source_path: Path) -> SidecarParseResult:
        device = _child(root, "Device")
        serial = _field(device, "SerialNumber", "serialNo", "serialNumber")
        model = _field(device, "ModelName", "modelName")

        result = SidecarParseResult(source_path, self.name)
        if serial:
            result.record = CameraIdentityRecord(
                serial_number=serial,
                model=model or config.UNKNOWN_MODEL,
                source_path=source_path,
            )
        logging.info(f"Found {self.name}: Serial={serial}, Model={model}")
        return result


# Order matters only for readability: each schema keys off a distinct root element
SCHEMAS = (
    MediaProfileSchema(),
    CueUpSchema(),
    DiscMetaSchema(),
    DeviceBlockSchema("NonRealTimeMeta"),
    DeviceBlockSchema("XAVCMetadata"),
    DeviceBlockSchema("Clip"),
)


class SidecarParser:
    """
    Turns camera-written XML descriptors into CameraIdentityRecords.
    Malformed or unrecognised descriptors yield no record and never raise.
    """

    def __init__(self, schemas=SCHEMAS):
        self.schemas = schemas

    def inspect(self, content: bytes, source_path: Path) -> SidecarParseResult:
        """
        Classifies a descriptor against the known schemas.
        Raises SidecarParseError if the content is not well-formed XML.
        """
        try:
            root = ET.fromstring(content)
        except (ET.ParseError, LookupError, ValueError) as e:
            # LookupError: unknown encoding declared in the XML prolog
            raise SidecarParseError(f"Malformed XML in {source_path}: {e}") from e

        for schema in self.schemas:
            if schema.matches(root):
                return schema.extract(root, source_path)

        logging.info(f"Unknown XML format in {source_path.name} (root <{_local(root.tag)}>)")
        return SidecarParseResult(source_path)

    def parse(self, content: bytes, source_path: Path) -> Optional[CameraIdentityRecord]:
        try:
            return self.inspect(content, source_path).record
        except SidecarParseError as e:
            logging.warning(str(e))
            return None

    def parse_file(self, path: Path) -> Optional[CameraIdentityRecord]:
        try:
            content = path.read_bytes()
        except OSError as e:
            logging.warning(f"Cannot read descriptor {path}: {e}")
            return None
        return self.parse(content, path)

    def parse_all(self, paths: Iterable[Path]) -> List[CameraIdentityRecord]:
        """Parses descriptors in the given order, keeping only those that yield an identity."""
        results = []
        for path in paths:
            logging.debug(f"Parsing descriptor: {path}")
            record = self.parse_file(path)
            if record:
                if record.video_paths:
                    logging.debug(f"{path.name} references {len(record.video_paths)} video files")
                results.append(record)

        logging.info(f"Total cameras found from descriptors: {len(results)}")
        return results
