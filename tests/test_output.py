import os

import pytest

from emitters.generic import Artifact
from errors import OutputError
from utils.output import write_artifacts


def _stages():
    return [
        ("devices", [Artifact("tftpboot/805ec0b4427c.cfg", "#T27G\n")]),
        ("routing", [Artifact("ExtConf/ExtensionsCID.conf", "CID_1119 = 1119\n")]),
        ("gateway", [Artifact("CiscoConf.txt", "\ndial-peer voice 947900 voip\n")]),
    ]


def test_direct_write(tmp_path):
    out = tmp_path / "results"
    written = write_artifacts(str(out), _stages(), dirs=["tftpboot", "UsersConf", "ExtConf"])
    assert (out / "tftpboot" / "805ec0b4427c.cfg").read_text(encoding="utf-8") == "#T27G\n"
    assert (out / "CiscoConf.txt").read_bytes() == b"\ndial-peer voice 947900 voip\n"
    assert (out / "UsersConf").is_dir()
    assert written == sum(len(a.content.encode("utf-8")) for _, arts in _stages() for a in arts)


def test_lf_line_endings_and_utf8(tmp_path):
    write_artifacts(str(tmp_path), [("routing", [Artifact("x.conf", "Факс\nline\n")])])
    assert (tmp_path / "x.conf").read_bytes() == "Факс\nline\n".encode("utf-8")


def test_direct_failure_keeps_earlier_stages(tmp_path):
    out = tmp_path / "results"
    (out / "ExtConf").mkdir(parents=True)
    # A directory where a file should go makes the routing stage fail
    (out / "ExtConf" / "ExtensionsCID.conf").mkdir()

    with pytest.raises(OutputError) as exc:
        write_artifacts(str(out), _stages())
    assert exc.value.stage == "routing"
    assert "ExtensionsCID.conf" in exc.value.path
    assert str(exc.value).startswith("routing: cannot write ")
    assert (out / "tftpboot" / "805ec0b4427c.cfg").exists()
    assert not (out / "CiscoConf.txt").exists()


def test_atomic_write_replaces_old_output(tmp_path):
    out = tmp_path / "results"
    out.mkdir()
    (out / "stale.conf").write_text("old", encoding="utf-8")

    write_artifacts(str(out), _stages(), dirs=["UsersConf"], atomic=True)
    assert not (out / "stale.conf").exists()
    assert (out / "ExtConf" / "ExtensionsCID.conf").exists()
    assert (out / "UsersConf").is_dir()
    assert [p.name for p in tmp_path.iterdir()] == ["results"]


def test_atomic_failure_leaves_old_output(tmp_path):
    out = tmp_path / "results"
    out.mkdir()
    (out / "stale.conf").write_text("old", encoding="utf-8")
    stages = _stages() + [("broken", [Artifact("a/b", "x"), Artifact("a/b/c", "y")])]

    with pytest.raises(OutputError) as exc:
        write_artifacts(str(out), stages, atomic=True)
    assert exc.value.stage == "broken"
    assert (out / "stale.conf").read_text(encoding="utf-8") == "old"
    assert not (out / "tftpboot").exists()
    assert sorted(os.listdir(tmp_path)) == ["results"]


def test_path_outside_output_root_is_refused(tmp_path):
    out = tmp_path / "results"
    stages = [("devices", [Artifact("tftpboot/../../escaped.cfg", "x\n")])]

    with pytest.raises(OutputError) as exc:
        write_artifacts(str(out), stages)
    assert exc.value.stage == "devices"
    assert "outside the output directory" in str(exc.value)
    assert not (tmp_path / "escaped.cfg").exists()


def test_staged_write_refuses_escaping_paths(tmp_path):
    out = tmp_path / "results"
    with pytest.raises(OutputError):
        write_artifacts(str(out), [("devices", [Artifact("../escaped.cfg", "x\n")])], atomic=True)
    assert sorted(os.listdir(tmp_path)) == []
