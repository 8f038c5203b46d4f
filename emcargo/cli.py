"""Command line entry points.

``emcargo-rustc`` is installed as cargo's ``RUSTC_WRAPPER``: cargo runs it as
``emcargo-rustc <rustc> <args...>`` and it forwards the call through
:class:`BuildEngine`.  ``emcargo`` is the user-facing launcher: it exports
the engine configuration and the wrapper, then runs cargo.

Usage:
    emcargo --target asmjs-unknown-emscripten --emit em-html build --release
    emcargo --emit llvm35-ir
    emcargo --emit em-js --release        (cargo subcommand defaults to build)
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from . import executor
from .command import CommandType, CompileCommand
from .config import EngineConfig, default_plugin_dir
from .engine import BuildEngine
from .errors import ConfigError, EmcargoError, ExitStatusError

LOG = logging.getLogger("emcargo.cli")

WRAPPER_NAME = "emcargo-rustc"
ENV_LOG = "EMCARGO_LOG"

# launcher options; anything else is handed to cargo
VALUE_OPTIONS = {"--target", "--sysroot", "--emcc", "--opt", "--emit", "--plugin-dir", "--cargo", "--log-level"}
FLAG_OPTIONS = {"-v", "--verbose", "-h", "--help"}


def _select_symbol(preferred: str, fallback: str) -> str:
    """Return preferred symbol when it can be encoded, otherwise fallback."""
    for stream in (sys.stdout, sys.stderr):
        encoding = getattr(stream, "encoding", None)
        if not encoding:
            continue
        try:
            preferred.encode(encoding)
        except UnicodeEncodeError:
            return fallback
    return preferred


FAIL_MARK = _select_symbol("✗", "[ERROR]")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    print(f"{FAIL_MARK} emcargo: {message}", file=sys.stderr)


def wrapper_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``emcargo-rustc``."""
    argv = list(sys.argv[1:] if argv is None else argv)
    _configure_logging(os.environ.get(ENV_LOG, "WARNING"))
    if not argv:
        print(f"usage: {WRAPPER_NAME} <rustc> [args...]", file=sys.stderr)
        return 2

    command = CompileCommand.from_argv(argv)
    try:
        engine = BuildEngine(EngineConfig.from_env())
        engine.exec(command)
    except ExitStatusError as exc:
        # rustc reports its own errors; failures further down the pipeline do not
        if exc.argv and exc.argv[0] == command.program:
            LOG.debug("%s", exc)
        else:
            _fail(str(exc))
        return exc.returncode if exc.returncode > 0 else 1
    except EmcargoError as exc:
        _fail(str(exc))
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


def find_wrapper() -> Path:
    """Locate ``emcargo-rustc`` next to this program, then on PATH."""
    sibling = Path(sys.argv[0]).resolve().parent / WRAPPER_NAME
    if sibling.exists():
        return sibling
    which_result = shutil.which(WRAPPER_NAME)
    if which_result:
        return Path(which_result)
    raise ConfigError(f"Tool not found: {WRAPPER_NAME}")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="emcargo",
        description="Run cargo with rustc invocations routed through emcargo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--target", help="Cross-compilation target triple")
    parser.add_argument("--sysroot", type=Path, help="Sysroot passed to rustc for target crates")
    parser.add_argument("--emcc", type=Path, help="Path to emcc (default: emcc on PATH)")
    parser.add_argument("--opt", type=Path, help="Path to LLVM opt (default: opt on PATH)")
    parser.add_argument(
        "--emit",
        help="Emit kind for binary crates: em-html, em-js, llvm35-* or any rustc --emit kind",
    )
    parser.add_argument(
        "--plugin-dir",
        type=Path,
        help="Directory holding the opt plugins (default: directory of this program)",
    )
    parser.add_argument("--cargo", default=os.environ.get("CARGO", "cargo"), help="cargo executable")
    parser.add_argument(
        "--log-level",
        default=os.environ.get(ENV_LOG, "WARNING"),
        help="Logging level (default WARNING)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def split_argv(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split argv into emcargo's own options and the cargo command line.

    emcargo options come first; the first token that is not one of them (or
    everything after a bare ``--``) starts the cargo arguments.
    """
    i = 0
    while i < len(argv):
        token = argv[i]
        if token == "--":
            return argv[:i], argv[i + 1:]
        name = token.split("=", 1)[0]
        if name in VALUE_OPTIONS:
            i += 1 if "=" in token else 2
        elif token in FLAG_OPTIONS:
            i += 1
        else:
            break
    return argv[:i], argv[i:]


def cargo_command(args: argparse.Namespace, config: EngineConfig, wrapper: Path) -> CompileCommand:
    cargo_args = list(args.cargo_args)
    if not cargo_args or cargo_args[0].startswith("-"):
        cargo_args.insert(0, "build")
    if config.target and not any(a == "--target" or a.startswith("--target=") for a in cargo_args):
        cargo_args.extend(["--target", config.target])

    envs = config.to_env()
    envs["RUSTC_WRAPPER"] = os.fspath(wrapper)
    envs[ENV_LOG] = args.log_level
    return CompileCommand(
        program=args.cargo,
        args=tuple(cargo_args),
        envs=envs,
        command_type=CommandType.OTHER,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``emcargo``."""
    parser = build_arg_parser()
    own, cargo_args = split_argv(list(sys.argv[1:] if argv is None else argv))
    args = parser.parse_args(own)
    args.cargo_args = cargo_args
    if args.verbose:
        args.log_level = "DEBUG"
    _configure_logging(args.log_level)

    try:
        config = EngineConfig(
            target=args.target,
            sysroot=args.sysroot,
            emcc=args.emcc,
            opt=args.opt,
            emit=args.emit,
            plugin_dir=args.plugin_dir or default_plugin_dir(),
        )
        command = cargo_command(args, config, find_wrapper())
        LOG.info("running %s", command)
        executor.execute(command)
    except ExitStatusError as exc:
        _fail(str(exc))
        return exc.returncode if exc.returncode > 0 else 1
    except EmcargoError as exc:
        _fail(str(exc))
        return 1
    except KeyboardInterrupt:
        _fail("build interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
