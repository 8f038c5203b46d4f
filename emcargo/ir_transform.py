"""Repair and optimise the LLVM IR module emitted by rustc.

rustc emits IR with the newer metadata syntax (``!0 = !{...}``,
``distinct !{...}``) while the emscripten toolchain is built on LLVM 3.5,
which expects every metadata operand to be spelled ``metadata !N``.  The
module is rewritten line by line, then run through ``opt`` with two plugin
passes that strip integer overflow checks and ``llvm.assume`` intrinsics.

The module on disk is replaced in one step at the very end; any failure
before that leaves it exactly as rustc wrote it.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, List

from . import executor
from .errors import IRTransformError

LOGGER = logging.getLogger("emcargo.ir_transform")

METADATA_SIGIL = "!"
METADATA_KEYWORD = "metadata "

OVERFLOW_PLUGIN = "RemoveOverflowChecks.so"
ASSUME_PLUGIN = "RemoveAssume.so"
OPT_PASSES = ("-remove-overflow-checks", "-remove-assume", "-globaldce")


def repair_line(line: str) -> str:
    """Rewrite one metadata definition line into LLVM 3.5 syntax.

    ``!7 = distinct !{!1}`` becomes ``!7 = metadata !{metadata !1}``.
    Lines that do not start with ``!`` are returned unchanged.
    """
    if not line.startswith(METADATA_SIGIL):
        return line
    line = line.replace(METADATA_SIGIL, METADATA_KEYWORD + METADATA_SIGIL)
    line = line.replace("distinct metadata", "metadata")
    # the definition itself must stay a bare `!N`
    return line[len(METADATA_KEYWORD):]


def repair_module(lines: Iterable[str]) -> bytes:
    out: List[str] = []
    for line in lines:
        out.append(repair_line(line.rstrip("\r\n")))
        out.append("\n")
    return "".join(out).encode("utf-8")


def read_repaired(path: Path) -> bytes:
    """Read ``path`` and return the fully repaired module."""
    try:
        with open(path, "r", encoding="utf-8", newline="") as fh:
            return repair_module(fh)
    except (OSError, UnicodeDecodeError) as exc:
        raise IRTransformError(f"cannot read IR module {path}: {exc}") from exc


def optimizer_argv(opt: str | os.PathLike, plugin_dir: Path) -> List[str]:
    plugin_dir = Path(plugin_dir)
    return [
        os.fspath(opt),
        f"-load={plugin_dir / OVERFLOW_PLUGIN}",
        f"-load={plugin_dir / ASSUME_PLUGIN}",
        *OPT_PASSES,
        "-S",
    ]


def optimize(source: bytes, opt: str | os.PathLike, plugin_dir: Path) -> bytes:
    """Pipe ``source`` through ``opt`` and return the textual result."""
    return executor.pipe(optimizer_argv(opt, plugin_dir), source)


def replace_module(path: Path, data: bytes) -> None:
    """Atomically replace ``path`` with ``data``."""
    path = Path(path)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise IRTransformError(f"cannot create temporary file next to {path}: {exc}") from exc
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except OSError as exc:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise IRTransformError(f"cannot write IR module {path}: {exc}") from exc


def transform_module(path: Path, opt: str | os.PathLike, plugin_dir: Path) -> None:
    """Repair and optimise the IR module at ``path`` in place."""
    path = Path(path)
    LOGGER.debug("repairing metadata syntax in %s", path)
    source = read_repaired(path)
    LOGGER.debug("optimising %s with %s", path, opt)
    optimized = optimize(source, opt, plugin_dir)
    replace_module(path, optimized)


__all__ = [
    "repair_line",
    "repair_module",
    "read_repaired",
    "optimizer_argv",
    "optimize",
    "replace_module",
    "transform_module",
]
