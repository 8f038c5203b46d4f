"""Compile command model.

A :class:`CompileCommand` is one tool invocation handed to the engine by the
build orchestrator: the program, its ordered arguments, the working directory
and the environment overrides cargo asked for.  Commands are immutable; every
edit returns a new instance so the original stays available for fallthrough.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


class CommandType(enum.Enum):
    RUSTC = "rustc"
    RUSTC_QUERY = "rustc-query"
    RUSTDOC = "rustdoc"
    OTHER = "other"


# rustc invocations cargo issues to learn about the toolchain, not to compile.
QUERY_FLAGS = {"-V", "-vV", "--version"}


def _tool_name(program: str) -> str:
    name = Path(program).name
    if name.endswith(".exe"):
        name = name[:-4]
    return name


def detect_command_type(argv: Sequence[str]) -> CommandType:
    if not argv:
        return CommandType.OTHER
    name = _tool_name(argv[0])
    if name == "rustdoc":
        return CommandType.RUSTDOC
    if name != "rustc":
        return CommandType.OTHER
    for arg in argv[1:]:
        if arg in QUERY_FLAGS or arg.startswith("--print"):
            return CommandType.RUSTC_QUERY
    return CommandType.RUSTC


@dataclass(frozen=True)
class CompileCommand:
    program: str
    args: Tuple[str, ...] = ()
    cwd: Optional[Path] = None
    envs: Dict[str, str] = field(default_factory=dict)
    command_type: CommandType = CommandType.OTHER

    @classmethod
    def from_argv(
        cls,
        argv: Sequence[str],
        *,
        cwd: Optional[Path | str] = None,
        envs: Optional[Mapping[str, str]] = None,
    ) -> "CompileCommand":
        """Build a command from a raw argv as cargo passes it to a wrapper."""
        if not argv:
            raise ValueError("empty command line")
        return cls(
            program=str(argv[0]),
            args=tuple(str(a) for a in argv[1:]),
            cwd=Path(cwd) if cwd is not None else None,
            envs=dict(envs or {}),
            command_type=detect_command_type(argv),
        )

    def get_args(self) -> Tuple[str, ...]:
        return self.args

    def get_envs(self) -> Dict[str, str]:
        return dict(self.envs)

    def get_cwd(self) -> Optional[Path]:
        return self.cwd

    def to_argv(self) -> List[str]:
        return [self.program, *self.args]

    def process_env(self) -> Dict[str, str]:
        """Environment for the child: the current one plus this command's overrides."""
        env = os.environ.copy()
        env.update(self.envs)
        return env

    def arg(self, value: str | os.PathLike) -> "CompileCommand":
        return self.extend_args([value])

    def extend_args(self, values: Iterable[str | os.PathLike]) -> "CompileCommand":
        return replace(self, args=self.args + tuple(os.fspath(v) for v in values))

    def without_emit(self) -> "CompileCommand":
        """Drop every ``--emit`` flag, in both ``--emit=X`` and ``--emit X`` form."""
        kept: List[str] = []
        skip_next = False
        for arg in self.args:
            if skip_next:
                skip_next = False
                continue
            if arg == "--emit":
                skip_next = True
                continue
            if arg.startswith("--emit"):
                continue
            kept.append(arg)
        return replace(self, args=tuple(kept))

    def flag_value(self, name: str) -> Optional[str]:
        """Return the value following the first ``name``, or of ``name=value``."""
        prefix = name + "="
        for idx, arg in enumerate(self.args):
            if arg == name and idx + 1 < len(self.args):
                return self.args[idx + 1]
            if arg.startswith(prefix):
                return arg[len(prefix):]
        return None

    def has_flag(self, name: str) -> bool:
        prefix = name + "="
        return any(arg == name or arg.startswith(prefix) for arg in self.args)

    def has_flag_pair(self, name: str, value: str) -> bool:
        """True when ``name value`` (or ``name=value``) appears anywhere."""
        joined = f"{name}={value}"
        for first, second in zip(self.args, self.args[1:]):
            if first == name and second == value:
                return True
        return joined in self.args

    def __str__(self) -> str:
        return " ".join(self.to_argv())


__all__ = ["CommandType", "CompileCommand", "detect_command_type"]
