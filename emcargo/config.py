"""Engine configuration.

The configuration is assembled once per build run (by the ``emcargo``
launcher, which exports it as ``EMCARGO_*`` variables for every wrapper
process cargo spawns) and is only ever read afterwards.
"""

from __future__ import annotations

import enum
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from .errors import ConfigError

ENV_TARGET = "EMCARGO_TARGET"
ENV_SYSROOT = "EMCARGO_SYSROOT"
ENV_EMCC = "EMCARGO_EMCC"
ENV_OPT = "EMCARGO_OPT"
ENV_EMIT = "EMCARGO_EMIT"
ENV_PLUGIN_DIR = "EMCARGO_PLUGIN_DIR"

DEFAULT_EMCC = "emcc"
DEFAULT_OPT = "opt"

# Emit kinds whose IR must be rewritten for the LLVM 3.5 toolchain.
LEGACY_IR_PREFIX = "llvm35-"
BROWSER_PREFIX = "em-"
REPAIR_PREFIXES = (LEGACY_IR_PREFIX, BROWSER_PREFIX)


class EmitRequest(enum.Enum):
    NONE = "none"
    LEGACY_REPAIR = "legacy-repair"
    PASSTHROUGH = "passthrough"


def classify_emit(emit: Optional[str]) -> EmitRequest:
    """Map a configured emit kind to the kind of rewrite it needs.

    The repair prefixes are checked first; any other non-empty kind is passed
    to rustc verbatim.
    """
    if not emit:
        return EmitRequest.NONE
    if emit.startswith(REPAIR_PREFIXES):
        return EmitRequest.LEGACY_REPAIR
    return EmitRequest.PASSTHROUGH


def is_browser_emit(emit: Optional[str]) -> bool:
    return bool(emit) and emit.startswith(BROWSER_PREFIX)


def default_plugin_dir() -> Path:
    """Directory holding the running program, where the opt plugins are installed."""
    program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return Path(program).resolve().parent


@dataclass(frozen=True)
class EngineConfig:
    target: Optional[str] = None
    sysroot: Optional[Path] = None
    emcc: Optional[Path] = None
    opt: Optional[Path] = None
    emit: Optional[str] = None
    plugin_dir: Path = field(default_factory=default_plugin_dir)

    def __post_init__(self) -> None:
        if self.emit is not None and (not self.emit or any(ch.isspace() for ch in self.emit)):
            raise ConfigError(f"invalid emit kind: {self.emit!r}")

    @property
    def emit_request(self) -> EmitRequest:
        return classify_emit(self.emit)

    @property
    def needs_repair(self) -> bool:
        return self.emit_request is EmitRequest.LEGACY_REPAIR

    @property
    def emcc_program(self) -> str:
        return os.fspath(self.emcc) if self.emcc else DEFAULT_EMCC

    @property
    def opt_program(self) -> str:
        return os.fspath(self.opt) if self.opt else DEFAULT_OPT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ

        def _get(key: str) -> Optional[str]:
            value = env.get(key)
            if value is None or value == "":
                return None
            return value

        def _path(key: str) -> Optional[Path]:
            value = _get(key)
            return Path(value) if value is not None else None

        kwargs = {}
        plugin_dir = _path(ENV_PLUGIN_DIR)
        if plugin_dir is not None:
            kwargs["plugin_dir"] = plugin_dir
        return cls(
            target=_get(ENV_TARGET),
            sysroot=_path(ENV_SYSROOT),
            emcc=_path(ENV_EMCC),
            opt=_path(ENV_OPT),
            emit=_get(ENV_EMIT),
            **kwargs,
        )

    def to_env(self) -> Dict[str, str]:
        """Environment variables that make :meth:`from_env` rebuild this config."""
        env: Dict[str, str] = {ENV_PLUGIN_DIR: os.fspath(self.plugin_dir)}
        if self.target:
            env[ENV_TARGET] = self.target
        if self.sysroot:
            env[ENV_SYSROOT] = os.fspath(self.sysroot)
        if self.emcc:
            env[ENV_EMCC] = os.fspath(self.emcc)
        if self.opt:
            env[ENV_OPT] = os.fspath(self.opt)
        if self.emit:
            env[ENV_EMIT] = self.emit
        return env


__all__ = [
    "EngineConfig",
    "EmitRequest",
    "classify_emit",
    "is_browser_emit",
    "default_plugin_dir",
]
