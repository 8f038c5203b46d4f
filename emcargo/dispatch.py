"""Hand the finished IR module to emscripten."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from . import executor
from .command import CompileCommand
from .errors import UnsupportedEmitError
from .executor import ProcessResult

LOGGER = logging.getLogger("emcargo.dispatch")

EMIT_EXTENSIONS: Dict[str, str] = {
    "em-html": "html",
    "em-js": "js",
}

# SDL2 + GL, the runtime an interactive graphics/audio application links against.
EMCC_LINK_FLAGS = ("-lGL", "-lSDL", "-s", "USE_SDL=2")


def output_extension(emit: str) -> str:
    try:
        return EMIT_EXTENSIONS[emit]
    except KeyError:
        raise UnsupportedEmitError(f"unsupported emscripten emit type: {emit}") from None


def emcc_command(
    ir_path: Path,
    crate_name: str,
    out_dir: str | os.PathLike,
    emit: str,
    emcc: str | os.PathLike = "emcc",
) -> CompileCommand:
    extension = output_extension(emit)
    output = Path(out_dir) / f"{crate_name}.{extension}"
    return CompileCommand(
        program=os.fspath(emcc),
        args=(os.fspath(ir_path), *EMCC_LINK_FLAGS, "-o", os.fspath(output)),
    )


def dispatch(
    ir_path: Path,
    crate_name: str,
    out_dir: str | os.PathLike,
    emit: str,
    emcc: str | os.PathLike = "emcc",
    with_output: bool = False,
) -> Optional[ProcessResult]:
    """Lower ``ir_path`` to a browser artifact next to it."""
    command = emcc_command(ir_path, crate_name, out_dir, emit, emcc)
    LOGGER.debug("lowering %s for the browser (%s)", ir_path, emit)
    return executor.execute(command, with_output)


__all__ = ["EMIT_EXTENSIONS", "EMCC_LINK_FLAGS", "output_extension", "emcc_command", "dispatch"]
