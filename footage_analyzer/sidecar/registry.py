import os
import logging
from pathlib import Path
from typing import Iterable, Union

from .. import config
from ..exceptions import RegistryConflictError
from ..models import CameraIdentityRecord, IdentityRegistry


def canonical_path_key(path: Union[str, Path]) -> str:
    """
    Key used to match a discovered file against descriptor-declared paths:
    absolute, normalised, forward slashes, case-folded.
    """
    p = os.path.normpath(os.path.abspath(str(path)))
    return p.replace('\\', '/').casefold()


class RegistryBuilder:
    """
    Folds descriptor identities into a serial index and a path index.

    policy decides who owns a path claimed by two cameras, or a serial declared
    with two different models:
      - 'last':   later descriptor overwrites (descriptor discovery order)
      - 'first':  earlier descriptor is kept
      - 'reject': RegistryConflictError
    """

    def __init__(self, policy: str = config.CONFLICT_POLICY):
        if policy not in config.CONFLICT_POLICIES:
            raise ValueError(f"Unknown conflict policy: {policy!r}")
        self.policy = policy

    def build(self, records: Iterable[CameraIdentityRecord]) -> IdentityRegistry:
        registry = IdentityRegistry()

        for rec in records:
            self._add_serial(registry, rec)
            for video_path in rec.video_paths:
                self._add_path(registry, canonical_path_key(video_path), rec)

        logging.info(f"Camera registry built with {len(registry.serial_index)} cameras")
        logging.info(f"Video-to-camera mapping has {len(registry.path_index)} entries")
        return registry

    def _add_serial(self, registry: IdentityRegistry, rec: CameraIdentityRecord):
        existing = registry.serial_index.get(rec.serial_number)
        if existing is None:
            registry.serial_index[rec.serial_number] = rec
            return
        # A card normally repeats its serial in MEDIAPRO.XML and every clip sidecar
        if existing.model == rec.model:
            if self.policy == "last":
                registry.serial_index[rec.serial_number] = rec
            return

        msg = (f"Serial {rec.serial_number} declared as {existing.model} by {existing.source_path} "
               f"and as {rec.model} by {rec.source_path}")
        self._settle(registry, msg)
        if self.policy == "last":
            registry.serial_index[rec.serial_number] = rec

    def _add_path(self, registry: IdentityRegistry, key: str, rec: CameraIdentityRecord):
        owner = registry.path_index.get(key)
        if owner is None:
            registry.path_index[key] = rec.serial_number
            return
        # Same camera re-declaring its own clip (e.g. main profile + per-clip sidecar)
        if owner == rec.serial_number:
            return

        msg = f"Video {key} claimed by camera {owner} and camera {rec.serial_number}"
        self._settle(registry, msg)
        if self.policy == "last":
            registry.path_index[key] = rec.serial_number

    def _settle(self, registry: IdentityRegistry, msg: str):
        if self.policy == "reject":
            raise RegistryConflictError(msg)
        logging.warning(f"{msg}; keeping {self.policy} declaration")
        registry.conflicts.append(msg)


def build_registry(records: Iterable[CameraIdentityRecord],
                   policy: str = config.CONFLICT_POLICY) -> IdentityRegistry:
    return RegistryBuilder(policy).build(records)
