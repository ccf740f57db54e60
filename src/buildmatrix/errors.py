# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CIError(Exception):
    """
    Structured build error with enough context for:
      - clean CLI output
      - the per-step `error` text recorded in a JobResult
      - debugging without full tracebacks
    """
    message: str
    job: str = ""
    step: str | None = None
    details: dict = field(default_factory=dict)

    kind = "ci_error"

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.job:
            lines.append(f"job={self.job}")
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class ConfigError(CIError):
    """Malformed matrix definition. Raised before any job starts."""
    kind = "config_error"


class ToolchainError(CIError):
    kind = "toolchain_error"


class EnvironmentUnavailable(ToolchainError):
    """The job's `runs_on` label cannot be served by this host."""
    kind = "environment_unavailable"


class BuildError(CIError):
    kind = "build_error"


class CompressionError(CIError):
    kind = "compression_error"


class PackError(CIError):
    kind = "pack_error"


class PublishError(CIError):
    kind = "publish_error"


# step kind -> error raised when that step fails
ERROR_FOR_KIND = {
    "toolchain": ToolchainError,
    "build": BuildError,
    "compress": CompressionError,
    "pack": PackError,
    "publish": PublishError,
}


TOOL_HINTS = {
    "rustup": "Install rustup (https://rustup.rs) or fix PATH.",
    "cargo": "Install the Rust toolchain via rustup or fix PATH.",
    "cross": "Install cross (cargo install cross) and make sure Docker is running.",
    "docker": "Install Docker and ensure the daemon is running.",
    "upx": "Install UPX (e.g., apt install upx-ucl) or drop the compress step.",
    "strip": "Install binutils or set strip=False.",
}
