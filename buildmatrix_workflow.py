# buildmatrix_workflow.py
# Release build of the `cs` binary. Only the musl target is active for now;
# the other rows stay in the matrix so they can be switched back on.
from __future__ import annotations

from buildmatrix.dsl import definition, default_steps, target


def workflow():
    return definition(
        target("x86_64-unknown-linux-gnu", "ubuntu-latest", enabled=False),
        target("x86_64-unknown-linux-musl", "ubuntu-latest", cross=True),
        target("x86_64-pc-windows-msvc", "windows-latest", file_ext=".exe", enabled=False),
        target("x86_64-apple-darwin", "macos-latest", enabled=False),
        target("aarch64-apple-darwin", "macos-latest", cross=True, enabled=False),
        steps=default_steps(pack=False),
        binary="cs",
    )
