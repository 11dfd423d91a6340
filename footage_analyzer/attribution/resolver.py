from typing import Optional, Tuple

from ..models import IdentityRegistry, MediaRecord
from ..sidecar.registry import canonical_path_key

METHOD_EMBEDDED = "embedded"
METHOD_SIDECAR = "sidecar"


def resolve(record: MediaRecord, registry: IdentityRegistry) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Decides which camera shot a file.

    Strategy 1: serial embedded in the file itself (file-local, trusted first)
    Strategy 2: a descriptor that lists the file's path

    Returns (serial, model, method); all None when unattributed.
    """
    serial = record.embedded_serial
    method = METHOD_EMBEDDED if serial else None

    if not serial:
        serial = registry.path_index.get(canonical_path_key(record.path))
        method = METHOD_SIDECAR if serial else None

    if not serial:
        return None, None, None

    model = record.embedded_model or registry.model_for(serial)
    return serial, model, method


def attribute(record: MediaRecord, registry: IdentityRegistry) -> Tuple[Optional[str], Optional[str]]:
    serial, model, _ = resolve(record, registry)
    return serial, model
