# step_workflows/pack.py
from __future__ import annotations

import hashlib
import tarfile
from dataclasses import dataclass
from pathlib import Path

from ..errors import PackError


@dataclass(frozen=True)
class PackedRelease:
    archive: Path
    digest_file: Path
    sha256: str


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        while True:
            chunk = f.read(1024 * 1024)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def pack_binary(repo_root: Path, binary_path: Path, target: str, binary: str) -> PackedRelease:
    """
    Write release-<target>/<binary>-<target>.tar.gz (the binary at the archive
    root) plus a .sha256 file in `openssl dgst -sha256 -r` format.
    """
    src = repo_root / binary_path
    if not src.is_file():
        raise PackError(f"binary not found: {binary_path}", job=target)

    out_dir = repo_root / f"release-{target}"
    out_dir.mkdir(parents=True, exist_ok=True)

    archive = out_dir / f"{binary}-{target}.tar.gz"
    with tarfile.open(str(archive), mode="w:gz") as tar:
        tar.add(str(src), arcname=src.name)

    digest = _sha256_file(archive)
    digest_file = out_dir / f"{binary}-{target}.sha256"
    digest_file.write_text(f"{digest} *{archive.name}\n", encoding="utf-8")

    return PackedRelease(archive=archive, digest_file=digest_file, sha256=digest)
