"""Run commands as child processes.

Every call blocks until the child exits.  Failures are reported with the
error kind preserved (spawn, communication, exit status); nothing here
retries, that decision belongs to the build orchestrator.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .command import CompileCommand
from .errors import CommunicationError, ExitStatusError, SpawnError

LOGGER = logging.getLogger("emcargo.executor")


@dataclass(frozen=True)
class ProcessResult:
    args: List[str]
    returncode: int
    stdout: Optional[bytes] = None
    stderr: Optional[bytes] = None


def _describe(argv: Sequence[str]) -> str:
    return " ".join(str(a) for a in argv)


def _spawn(argv: List[str], **kwargs) -> subprocess.Popen:
    LOGGER.debug("Running: %s", _describe(argv))
    try:
        return subprocess.Popen(argv, **kwargs)
    except OSError as exc:
        raise SpawnError(f"could not execute process `{_describe(argv)}`: {exc}", argv) from exc


def _communicate(proc: subprocess.Popen, argv: List[str], data: Optional[bytes] = None):
    try:
        return proc.communicate(input=data)
    except OSError as exc:
        proc.kill()
        proc.wait()
        raise CommunicationError(f"I/O error talking to `{_describe(argv)}`: {exc}", argv) from exc


def _check_status(proc: subprocess.Popen, argv: List[str], stdout, stderr) -> None:
    if proc.returncode != 0:
        raise ExitStatusError(
            f"process didn't exit successfully: `{_describe(argv)}` (exit status {proc.returncode})",
            argv,
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
        )


def execute(command: CompileCommand, with_output: bool = False) -> Optional[ProcessResult]:
    """Run ``command``.

    Without ``with_output`` the child inherits our stdio and ``None`` is
    returned on success; otherwise stdout and stderr are captured and
    returned in a :class:`ProcessResult`.
    """
    argv = command.to_argv()
    stream = subprocess.PIPE if with_output else None
    proc = _spawn(
        argv,
        cwd=os.fspath(command.cwd) if command.cwd is not None else None,
        env=command.process_env(),
        stdout=stream,
        stderr=stream,
    )
    stdout, stderr = _communicate(proc, argv)
    _check_status(proc, argv, stdout, stderr)
    if not with_output:
        return None
    return ProcessResult(args=argv, returncode=proc.returncode, stdout=stdout, stderr=stderr)


def pipe(argv: Sequence[str], data: bytes, cwd: Optional[Path] = None) -> bytes:
    """Feed ``data`` to the child's stdin and return everything it wrote to stdout.

    stderr is inherited so tool diagnostics reach the user directly.
    """
    argv = [os.fspath(a) for a in argv]
    proc = _spawn(
        argv,
        cwd=os.fspath(cwd) if cwd is not None else None,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
    )
    stdout, _ = _communicate(proc, argv, data)
    _check_status(proc, argv, stdout, None)
    return stdout


__all__ = ["ProcessResult", "execute", "pipe"]
