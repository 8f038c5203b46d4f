"""
emcargo - route cargo's rustc invocations through an emscripten pipeline.

Binary crates are compiled to LLVM IR, the IR is repaired for the LLVM 3.5
based emscripten toolchain and stripped of overflow checks and assume
intrinsics by ``opt``, and finally lowered to ``.html`` or ``.js`` by emcc.
Modules:

    command.py       → compile command model
    config.py        → engine configuration and emit kinds
    classifier.py    → which rustc calls are rewritten
    planner.py       → how they are rewritten
    executor.py      → child process execution
    ir_transform.py  → IR metadata repair and opt passes
    dispatch.py      → emcc invocation
    engine.py        → BuildEngine tying the stages together
    cli.py           → ``emcargo`` and ``emcargo-rustc`` entry points
"""

from .command import CommandType, CompileCommand  # noqa: F401
from .config import EmitRequest, EngineConfig  # noqa: F401
from .engine import BuildEngine  # noqa: F401
from .errors import (  # noqa: F401
    ClassificationError,
    CommunicationError,
    ConfigError,
    EmcargoError,
    ExitStatusError,
    IRTransformError,
    ProcessError,
    SpawnError,
    UnsupportedEmitError,
)
from .executor import ProcessResult  # noqa: F401

__all__ = [
    "BuildEngine",
    "CommandType",
    "CompileCommand",
    "EmitRequest",
    "EngineConfig",
    "ProcessResult",
    "EmcargoError",
    "ClassificationError",
    "ConfigError",
    "UnsupportedEmitError",
    "IRTransformError",
    "ProcessError",
    "SpawnError",
    "CommunicationError",
    "ExitStatusError",
]

__version__ = "0.1.0"
