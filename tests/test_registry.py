import os
import pytest
from pathlib import Path

from footage_analyzer.exceptions import RegistryConflictError
from footage_analyzer.models import CameraIdentityRecord
from footage_analyzer.sidecar.registry import RegistryBuilder, build_registry, canonical_path_key


def _rec(serial, model="FX6", videos=(), src="MEDIAPRO.XML"):
    return CameraIdentityRecord(serial_number=serial, model=model,
                                source_path=Path(src), video_paths=[Path(v) for v in videos])


def test_canonical_path_key_normalizes(tmp_path):
    a = canonical_path_key(tmp_path / "Card1" / "Clip" / ".." / "Clip" / "C0001.MP4")
    b = canonical_path_key(str(tmp_path / "card1" / "clip" / "c0001.mp4"))
    assert a == b
    assert "\\" not in a
    assert os.path.isabs(a)


def test_build_indexes_serials_and_paths(tmp_path):
    v1 = tmp_path / "card1" / "C0001.MP4"
    v2 = tmp_path / "card2" / "C0001.MP4"
    registry = build_registry([_rec("S1", videos=[v1]), _rec("S2", model="A7S3", videos=[v2])])

    assert set(registry.serial_index) == {"S1", "S2"}
    assert registry.model_for("S2") == "A7S3"
    assert registry.model_for("nope") is None
    assert registry.path_index[canonical_path_key(v1)] == "S1"
    assert registry.path_index[canonical_path_key(v2)] == "S2"
    assert registry.conflicts == []


def test_last_policy_overwrites_path_owner(tmp_path):
    v = tmp_path / "C0001.MP4"
    registry = build_registry([_rec("S1", videos=[v]), _rec("S2", videos=[v])], policy="last")
    assert registry.path_index[canonical_path_key(v)] == "S2"
    assert len(registry.conflicts) == 1


def test_first_policy_keeps_path_owner(tmp_path):
    v = tmp_path / "C0001.MP4"
    registry = build_registry([_rec("S1", videos=[v]), _rec("S2", videos=[v])], policy="first")
    assert registry.path_index[canonical_path_key(v)] == "S1"
    assert len(registry.conflicts) == 1


def test_reject_policy_raises_on_path_collision(tmp_path):
    v = tmp_path / "C0001.MP4"
    with pytest.raises(RegistryConflictError):
        build_registry([_rec("S1", videos=[v]), _rec("S2", videos=[v])], policy="reject")


def test_serial_with_conflicting_models(tmp_path):
    records = [_rec("S1", model="FX6", src="a.xml"), _rec("S1", model="FX3", src="b.xml")]

    assert build_registry(records, policy="last").model_for("S1") == "FX3"
    assert build_registry(records, policy="first").model_for("S1") == "FX6"
    with pytest.raises(RegistryConflictError):
        build_registry(records, policy="reject")


def test_same_camera_repeating_itself_is_not_a_conflict(tmp_path):
    v = tmp_path / "Clip" / "C0001.MP4"
    records = [
        _rec("S1", videos=[v], src="MEDIAPRO.XML"),
        _rec("S1", src="C0001M01.XML"),
        _rec("S1", videos=[v], src="MEDIAPRO_COPY.XML"),
    ]
    registry = build_registry(records, policy="reject")
    assert registry.path_index[canonical_path_key(v)] == "S1"
    assert registry.conflicts == []


def test_unknown_policy():
    with pytest.raises(ValueError):
        RegistryBuilder("merge")
