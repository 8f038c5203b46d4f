"""Decide how an intercepted rustc command is rewritten."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .classifier import Classification
from .command import CompileCommand
from .config import EmitRequest, EngineConfig

LOGGER = logging.getLogger("emcargo.planner")

REPAIR_RUSTC_EMIT = "llvm-ir"


@dataclass(frozen=True)
class RewritePlan:
    """Outcome of planning for one command.

    ``emit`` is the configured kind carried forward to browser dispatch,
    ``rustc_emit`` the kind requested from rustc next to ``dep-info`` and
    ``transform`` whether the emitted IR goes through the repair pipeline.
    """

    emit: Optional[str] = None
    rustc_emit: Optional[str] = None
    transform: bool = False
    lto: bool = False
    sysroot: bool = False

    @property
    def rewrites_emit(self) -> bool:
        return self.rustc_emit is not None


def plan(classification: Classification, config: EngineConfig) -> RewritePlan:
    sysroot = config.sysroot is not None and not classification.is_build
    if not classification.wants_rewrite:
        return RewritePlan(sysroot=sysroot)

    request = config.emit_request
    if request is EmitRequest.LEGACY_REPAIR:
        return RewritePlan(
            emit=config.emit,
            rustc_emit=REPAIR_RUSTC_EMIT,
            transform=True,
            lto=True,
            sysroot=sysroot,
        )
    if request is EmitRequest.PASSTHROUGH:
        return RewritePlan(emit=config.emit, rustc_emit=config.emit, sysroot=sysroot)
    return RewritePlan(sysroot=sysroot)


def apply(command: CompileCommand, rewrite: RewritePlan, config: EngineConfig) -> CompileCommand:
    """Return ``command`` with ``rewrite`` applied; arguments, env and cwd are kept."""
    new_command = command
    if rewrite.rewrites_emit:
        new_command = new_command.without_emit().extend_args(
            ["--emit", f"dep-info,{rewrite.rustc_emit}"]
        )
        if rewrite.lto:
            new_command = new_command.extend_args(["-C", "lto"])
    if rewrite.sysroot and config.sysroot is not None:
        new_command = new_command.extend_args(["--sysroot", config.sysroot])
    if new_command is not command:
        LOGGER.debug("rewrote rustc command: %s", new_command)
    return new_command


__all__ = ["RewritePlan", "plan", "apply"]
