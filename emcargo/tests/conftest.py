"""
Pytest configuration and fixtures for emcargo tests.
"""
import textwrap
from pathlib import Path
from types import SimpleNamespace

import pytest

from emcargo.command import CompileCommand


SAMPLE_IR = (
    '; ModuleID = "app.0.rs"\n'
    "define i32 @main() {\n"
    "  ret i32 0, !dbg !7\n"
    "}\n"
    "!0 = !{!1}\n"
    "!7 = distinct !{!0}\n"
)

REPAIRED_SAMPLE_IR = (
    '; ModuleID = "app.0.rs"\n'
    "define i32 @main() {\n"
    "  ret i32 0, !dbg !7\n"
    "}\n"
    "!0 = metadata !{metadata !1}\n"
    "!7 = metadata !{metadata !0}\n"
)


@pytest.fixture
def fake_tool(tmp_path):
    """Factory writing small /bin/sh scripts that stand in for rustc, opt and emcc."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + textwrap.dedent(body), encoding="utf-8")
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def fake_rustc(fake_tool, tmp_path):
    """rustc stand-in: logs its argv and writes SAMPLE_IR to <out-dir>/<crate>.ll."""
    log = tmp_path / "rustc.log"
    ir_lines = " ".join(f"'{line}'" for line in SAMPLE_IR.splitlines())
    path = fake_tool(
        "rustc",
        f"""\
        echo "$@" >> "{log}"
        name=""
        out=""
        while [ $# -gt 0 ]; do
          case "$1" in
            --crate-name) name="$2"; shift ;;
            --out-dir) out="$2"; shift ;;
          esac
          shift
        done
        printf '%s\\n' {ir_lines} > "$out/$name.ll"
        echo "rustc done"
        """,
    )
    return SimpleNamespace(path=path, log=log)


@pytest.fixture
def fake_opt(fake_tool, tmp_path):
    """opt stand-in: records argv and stdin, echoes stdin back after a marker line."""
    log = tmp_path / "opt.log"
    stdin_copy = tmp_path / "opt.stdin"
    path = fake_tool(
        "opt",
        f"""\
        echo "$@" > "{log}"
        cat > "{stdin_copy}"
        echo "; optimized"
        cat "{stdin_copy}"
        """,
    )
    return SimpleNamespace(path=path, log=log, stdin_copy=stdin_copy)


@pytest.fixture
def failing_opt(fake_tool):
    return fake_tool(
        "opt-broken",
        """\
        cat > /dev/null
        echo "; half written"
        exit 3
        """,
    )


@pytest.fixture
def fake_emcc(fake_tool, tmp_path):
    """emcc stand-in: records argv and writes a page to the -o path."""
    log = tmp_path / "emcc.log"
    path = fake_tool(
        "emcc",
        f"""\
        echo "$@" > "{log}"
        out=""
        while [ $# -gt 0 ]; do
          if [ "$1" = "-o" ]; then out="$2"; fi
          shift
        done
        echo "<html></html>" > "$out"
        echo "emcc done"
        """,
    )
    return SimpleNamespace(path=path, log=log)


@pytest.fixture
def make_rustc_command():
    """Build a rustc CompileCommand shaped like the ones cargo issues."""

    def _make(*extra, crate_name="app", crate_type="bin", out_dir="/tmp/build", program="rustc", envs=None, cwd=None):
        argv = [program, "--crate-name", crate_name, "--crate-type", crate_type, "src/main.rs"]
        argv.extend(["--emit=dep-info,link", "--out-dir", str(out_dir)])
        argv.extend(extra)
        return CompileCommand.from_argv(argv, envs=envs, cwd=cwd)

    return _make
