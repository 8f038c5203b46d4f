"""Classify intercepted rustc invocations.

Only real rustc compiles are candidates for rewriting; everything else
(rustdoc, toolchain queries, build script runs) falls through untouched.

Build-time tooling detection is a heuristic.  Cargo does not say which
compiles produce helpers that must run on the host, so we infer it from the
reserved build-script crate name and from the absence of ``--target`` while
cross-compiling.  A toolchain that changes its invocation shape can produce
false positives here, which is why the predicate is injectable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .command import CommandType, CompileCommand
from .config import EngineConfig
from .errors import ClassificationError

LOGGER = logging.getLogger("emcargo.classifier")

BUILD_SCRIPT_CRATE = "build-script-build"
# newer cargo passes the crate name with underscores
BUILD_SCRIPT_CRATES = frozenset({BUILD_SCRIPT_CRATE, "build_script_build"})

BuildToolPredicate = Callable[[str, bool, EngineConfig], bool]


def is_build_tool(crate_name: str, has_target: bool, config: EngineConfig) -> bool:
    """Return True when the crate is compiled to run on the build host."""
    if crate_name in BUILD_SCRIPT_CRATES:
        return True
    return not has_target and config.target is not None


@dataclass(frozen=True)
class Classification:
    crate_name: str
    out_dir: str
    is_binary: bool
    has_target: bool
    is_build: bool

    @property
    def ir_path(self) -> Path:
        return Path(self.out_dir) / f"{self.crate_name}.ll"

    @property
    def wants_rewrite(self) -> bool:
        return self.is_binary and not self.is_build


def classify(
    command: CompileCommand,
    config: EngineConfig,
    is_build_tool: BuildToolPredicate = is_build_tool,
) -> Optional[Classification]:
    """Classify ``command``; ``None`` means execute it unmodified."""
    if command.command_type is not CommandType.RUSTC:
        return None

    is_binary = command.has_flag_pair("--crate-type", "bin")

    crate_name = command.flag_value("--crate-name")
    if crate_name is None:
        raise ClassificationError(f"rustc invocation without --crate-name: {command}")
    out_dir = command.flag_value("--out-dir")
    if out_dir is None:
        raise ClassificationError(f"rustc invocation without --out-dir: {command}")

    has_target = command.has_flag("--target")
    is_build = is_build_tool(crate_name, has_target, config)
    if is_build:
        LOGGER.debug("%s treated as build-time tooling", crate_name)

    return Classification(
        crate_name=crate_name,
        out_dir=out_dir,
        is_binary=is_binary,
        has_target=has_target,
        is_build=is_build,
    )


__all__ = ["BUILD_SCRIPT_CRATE", "BUILD_SCRIPT_CRATES", "Classification", "classify", "is_build_tool"]
