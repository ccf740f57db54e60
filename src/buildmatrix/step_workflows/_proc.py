# step_workflows/_proc.py
from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Type

from ..errors import TOOL_HINTS, CIError
from ..ui.console import get_console


def check_tool_available(tool: str, error_cls: Type[CIError]) -> None:
    """Raise `error_cls` with an install hint if `tool` is not on PATH."""
    if shutil.which(tool) is None:
        hint = TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")
        raise error_cls(
            f"{tool} is not available",
            details={"hint": hint},
        )


def run_tool(
    cmd: List[str],
    error_cls: Type[CIError],
    *,
    cwd: Path | None = None,
    env: Dict[str, str] | None = None,
) -> subprocess.CompletedProcess:
    """
    Run an external tool, raising `error_cls` on a missing executable or a
    non-zero exit. Output is captured so it can be shown on failure.
    """
    full_env = os.environ.copy()
    full_env.update(env or {})
    get_console().print_debug(f"$ {' '.join(cmd)}" + (f"  (cwd={cwd})" if cwd is not None else ""))

    try:
        proc = subprocess.run(
            cmd,
            shell=False,
            cwd=str(cwd) if cwd is not None else None,
            env=full_env,
            text=True,
            capture_output=True,
        )
    except FileNotFoundError:
        tool = cmd[0]
        raise error_cls(
            f"{tool} is not available",
            details={"hint": TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")},
        )

    if proc.returncode != 0:
        raise error_cls(
            f"command failed (exit={proc.returncode}): {' '.join(cmd)}",
            details={
                "exit_code": proc.returncode,
                "stderr": (proc.stderr or "").strip()[-2000:],
            },
        )
    return proc
