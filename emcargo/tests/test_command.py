"""Unit tests for the CompileCommand model"""
from pathlib import Path

import pytest

from emcargo.command import CommandType, CompileCommand, detect_command_type


@pytest.mark.parametrize(
    "argv,expected",
    [
        (["rustc", "--crate-name", "app", "src/main.rs"], CommandType.RUSTC),
        (["/home/u/.cargo/bin/rustc", "src/lib.rs"], CommandType.RUSTC),
        (["rustc.exe", "src/lib.rs"], CommandType.RUSTC),
        (["rustc", "-vV"], CommandType.RUSTC_QUERY),
        (["rustc", "-", "--crate-name", "___", "--print=file-names"], CommandType.RUSTC_QUERY),
        (["rustdoc", "src/lib.rs"], CommandType.RUSTDOC),
        (["target/debug/build/foo/build-script-build"], CommandType.OTHER),
        ([], CommandType.OTHER),
    ],
)
def test_detect_command_type(argv, expected):
    assert detect_command_type(argv) is expected


def test_from_argv_keeps_everything():
    cmd = CompileCommand.from_argv(
        ["rustc", "--crate-name", "app", "src/main.rs"],
        cwd="/work",
        envs={"CARGO_PKG_NAME": "app"},
    )
    assert cmd.program == "rustc"
    assert cmd.get_args() == ("--crate-name", "app", "src/main.rs")
    assert cmd.get_cwd() == Path("/work")
    assert cmd.get_envs() == {"CARGO_PKG_NAME": "app"}
    assert cmd.to_argv() == ["rustc", "--crate-name", "app", "src/main.rs"]


def test_from_argv_rejects_empty():
    with pytest.raises(ValueError):
        CompileCommand.from_argv([])


def test_arg_returns_new_command():
    cmd = CompileCommand.from_argv(["rustc", "a.rs"])
    extended = cmd.arg(Path("/sys/root"))
    assert extended.get_args() == ("a.rs", "/sys/root")
    assert cmd.get_args() == ("a.rs",)


class TestWithoutEmit:
    def test_joined_form(self):
        cmd = CompileCommand.from_argv(["rustc", "--emit=dep-info,link", "a.rs"])
        assert cmd.without_emit().get_args() == ("a.rs",)

    def test_separate_form(self):
        cmd = CompileCommand.from_argv(["rustc", "--emit", "dep-info,link", "a.rs"])
        assert cmd.without_emit().get_args() == ("a.rs",)

    def test_other_flags_kept_in_order(self):
        cmd = CompileCommand.from_argv(
            ["rustc", "-C", "opt-level=3", "--emit", "link", "--cfg", "feature=\"x\"", "--emit=asm"]
        )
        assert cmd.without_emit().get_args() == ("-C", "opt-level=3", "--cfg", "feature=\"x\"")


class TestFlagLookup:
    def test_flag_value_pair_and_joined(self):
        cmd = CompileCommand.from_argv(["rustc", "--crate-name", "app", "--out-dir=/tmp/out"])
        assert cmd.flag_value("--crate-name") == "app"
        assert cmd.flag_value("--out-dir") == "/tmp/out"
        assert cmd.flag_value("--target") is None

    def test_flag_value_at_end_without_value(self):
        cmd = CompileCommand.from_argv(["rustc", "--crate-name"])
        assert cmd.flag_value("--crate-name") is None

    def test_has_flag(self):
        cmd = CompileCommand.from_argv(["rustc", "--target=asmjs-unknown-emscripten"])
        assert cmd.has_flag("--target")
        assert not cmd.has_flag("--sysroot")

    def test_has_flag_pair_anywhere(self):
        cmd = CompileCommand.from_argv(["rustc", "--crate-type", "lib", "--crate-type", "bin"])
        assert cmd.has_flag_pair("--crate-type", "bin")
        assert not cmd.has_flag_pair("--crate-type", "dylib")
        joined = CompileCommand.from_argv(["rustc", "--crate-type=bin"])
        assert joined.has_flag_pair("--crate-type", "bin")


def test_process_env_overrides(monkeypatch):
    monkeypatch.setenv("EMCARGO_TEST_VALUE", "outer")
    cmd = CompileCommand.from_argv(["rustc"], envs={"EMCARGO_TEST_VALUE": "inner"})
    assert cmd.process_env()["EMCARGO_TEST_VALUE"] == "inner"
