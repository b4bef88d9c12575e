import os
import shutil
import tempfile
import logging
from typing import Iterable, List, Tuple

from errors import OutputError
logger = logging.getLogger(__name__)


def _inside(root: str, path: str) -> bool:
    real_root = os.path.realpath(root)
    return os.path.commonpath([real_root, os.path.realpath(path)]) == real_root


def _write_file(root: str, stage: str, artifact) -> int:
    path = os.path.join(root, *artifact.path.split("/"))
    if not _inside(root, path):
        raise OutputError(stage, path, ValueError("path is outside the output directory"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    data = artifact.content.encode("utf-8")
    with open(path, "wb") as f:
        f.write(data)
    return len(data)


def write_stage(root: str, stage: str, artifacts) -> int:
    written = 0
    for artifact in artifacts:
        try:
            written += _write_file(root, stage, artifact)
        except OSError as e:
            raise OutputError(stage, os.path.join(root, artifact.path), e) from e
    logger.info(f"{stage}: wrote {len(artifacts)} file(s), {written} bytes under {root}")
    return written


def ensure_dirs(root: str, dirs: Iterable[str]):
    for d in dirs:
        path = os.path.join(root, d)
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise OutputError("prepare", path, e) from e


def write_artifacts(output_dir: str, stages: List[Tuple[str, list]], dirs: Iterable[str] = (),
                    atomic: bool = False) -> int:
    """
    The only place that touches the disk.

    Direct mode writes stage by stage; if a stage fails the files of the
    stages before it stay where they are. Atomic mode builds the whole tree
    in a sibling staging directory and swaps it in with renames, so readers
    see either the old output or the new one.
    """
    dirs = list(dirs)
    if not atomic:
        ensure_dirs(output_dir, dirs)
        return sum(write_stage(output_dir, stage, artifacts) for stage, artifacts in stages)

    output_dir = os.path.abspath(output_dir)
    parent = os.path.dirname(output_dir)
    try:
        os.makedirs(parent, exist_ok=True)
        staging = tempfile.mkdtemp(prefix=".staging-", dir=parent)
    except OSError as e:
        raise OutputError("prepare", parent, e) from e

    try:
        ensure_dirs(staging, dirs)
        total = sum(write_stage(staging, stage, artifacts) for stage, artifacts in stages)
        _swap_in(staging, output_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    return total


def _swap_in(staging: str, output_dir: str):
    backup = None
    try:
        # mkdtemp creates 0700 directories
        os.chmod(staging, 0o755)
        if os.path.exists(output_dir):
            backup = tempfile.mkdtemp(prefix=".previous-", dir=os.path.dirname(output_dir))
            os.rmdir(backup)
            os.rename(output_dir, backup)
        os.rename(staging, output_dir)
    except OSError as e:
        if backup and not os.path.exists(output_dir) and os.path.exists(backup):
            os.rename(backup, output_dir)
        raise OutputError("swap", output_dir, e) from e
    if backup:
        shutil.rmtree(backup, ignore_errors=True)
    logger.debug(f"Swapped staged output into {output_dir}")
