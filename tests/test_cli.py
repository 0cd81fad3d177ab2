"""Tests for the Kestrel CLI, config, and error rendering."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from kestrel import __version__
from kestrel.cli import main
from kestrel.config import KestrelConfig, config_for, find_config, load_config
from kestrel.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    Error,
    Severity,
)
from kestrel.source import Location, Span

GOOD = "main (int, char**) int {\n    if 1 < 2 { :1 }\n    :0\n}\n"
BAD = "main (int int {\n}\n"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path):
    """Create a minimal kestrel project in a temp dir."""
    (tmp_path / "kestrel.toml").write_text(
        '[package]\nname = "demo"\nversion = "1.2.0"\n'
        '[build]\nint_width = 32\ntarget_triple = "x86_64-unknown-linux-gnu"\n'
    )
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.kst").write_text(GOOD)
    return tmp_path


# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Kestrel" in result.output
        assert "check" in result.output
        assert "view" in result.output
        assert "build" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_check_ok(self, runner, tmp_path):
        path = tmp_path / "ok.kst"
        path.write_text(GOOD)
        result = runner.invoke(main, ["check", str(path)])
        assert result.exit_code == 0
        assert "no errors" in result.output

    def test_check_reports_error(self, runner, tmp_path):
        path = tmp_path / "bad.kst"
        path.write_text(BAD)
        result = runner.invoke(main, ["--no-color", "check", str(path)])
        assert result.exit_code == 1
        assert "error[E200]" in result.output
        assert f"{path}:1:" in result.output

    def test_view(self, runner, tmp_path):
        path = tmp_path / "ok.kst"
        path.write_text(GOOD)
        result = runner.invoke(main, ["view", str(path)])
        assert result.exit_code == 0
        assert "FunctionDecl" in result.output
        assert "name: 'main'" in result.output
        assert "IfStmt" in result.output
        assert "LessExpr" in result.output

    def test_view_macro(self, runner, tmp_path):
        path = tmp_path / "args.kst"
        path.write_text("main (int, char**) int { args! argc, argv :0 }\n")
        result = runner.invoke(main, ["view", str(path)])
        assert result.exit_code == 0, result.output
        assert "MacroStmt" in result.output
        assert "name: 'args'" in result.output
        assert "'argv'" in result.output

    def test_build_writes_ir(self, runner, tmp_project):
        source = tmp_project / "src" / "main.kst"
        result = runner.invoke(main, ["build", str(source)])
        assert result.exit_code == 0, result.output
        ir_text = (tmp_project / "src" / "main.ll").read_text()
        assert '@"main"' in ir_text
        assert "i32" in ir_text
        assert "x86_64-unknown-linux-gnu" in ir_text

    def test_build_output_option(self, runner, tmp_path):
        source = tmp_path / "prog.kst"
        source.write_text(GOOD)
        out = tmp_path / "out.ll"
        result = runner.invoke(main, ["build", str(source), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "i64" in out.read_text()

    def test_build_codegen_error(self, runner, tmp_path):
        source = tmp_path / "prog.kst"
        source.write_text("main () int { :x }\n")
        result = runner.invoke(main, ["--no-color", "build", str(source)])
        assert result.exit_code == 1
        assert "error[E300]" in result.output

    def test_build_with_arguments(self, runner, tmp_path):
        source = tmp_path / "fib.kst"
        source.write_text("fib (int) int {\n    args! n\n    if n < 2 { :0 }\n    :n - 1\n}\n")
        result = runner.invoke(main, ["build", str(source)])
        assert result.exit_code == 0, result.output
        assert '%"n"' in (tmp_path / "fib.ll").read_text()

    def test_build_parse_error(self, runner, tmp_path):
        source = tmp_path / "prog.kst"
        source.write_text(BAD)
        result = runner.invoke(main, ["build", str(source)])
        assert result.exit_code == 1
        assert not (tmp_path / "prog.ll").exists()


# --- Config tests ---


class TestConfig:
    def test_find_config(self, tmp_project):
        nested = tmp_project / "src" / "main.kst"
        assert find_config(nested) == tmp_project / "kestrel.toml"

    def test_find_config_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_config(tmp_path)

    def test_load_config(self, tmp_project):
        config = load_config(tmp_project / "kestrel.toml")
        assert config.package.name == "demo"
        assert config.package.version == "1.2.0"
        assert config.build.int_width == 32
        assert config.build.target_triple == "x86_64-unknown-linux-gnu"

    def test_defaults(self, tmp_path):
        (tmp_path / "kestrel.toml").write_text("")
        config = load_config(tmp_path / "kestrel.toml")
        assert config == KestrelConfig()
        assert config.build.int_width == 64

    def test_bad_int_width(self, tmp_path):
        (tmp_path / "kestrel.toml").write_text("[build]\nint_width = 0\n")
        with pytest.raises(ValueError):
            load_config(tmp_path / "kestrel.toml")

    def test_config_for_falls_back(self, tmp_path):
        source = tmp_path / "lonely.kst"
        source.write_text(GOOD)
        assert config_for(source) == KestrelConfig()


# --- Error rendering tests ---


class TestDiagnostics:
    def test_error_to_diagnostic(self):
        err = Error(Location(index=4, line=0, column=4, offset=4), "expected `)`")
        diag = err.to_diagnostic("a.kst")
        assert diag.severity == Severity.ERROR
        assert diag.code == "E200"
        assert diag.filename == "a.kst"
        assert diag.labels[0].span.start == err.location

    def test_error_str(self):
        err = Error(Location(index=0, line=2, column=5, offset=0), "boom")
        assert str(err) == "3:6: boom"

    def test_render_without_color(self):
        renderer = DiagnosticRenderer(color=False)
        renderer.add_source("a.kst", "main (int\n")
        loc = Location(index=9, line=0, column=9, offset=9)
        diag = Error(loc, "expected `)`").to_diagnostic("a.kst")
        out = renderer.render(diag)
        assert "\033[" not in out
        assert out.splitlines()[0] == "error[E200]: expected `)`"
        assert "--> a.kst:1:10" in out
        assert "main (int" in out
        assert " " * 9 + "^" in out

    def test_render_with_color(self):
        renderer = DiagnosticRenderer(color=True)
        diag = Diagnostic(Severity.ERROR, "E200", "careful")
        assert "\033[" in renderer.render(diag)

    def test_error_hint_and_notes(self):
        loc = Location(index=2, line=0, column=2, offset=2)
        err = Error(loc, "unknown name `n`", code="E300", hint="name it first", notes=("see docs",))
        diag = err.to_diagnostic("c.kst")
        assert diag.labels[0].message == "name it first"
        assert diag.notes == ["see docs"]
        renderer = DiagnosticRenderer(color=False)
        renderer.add_source("c.kst", ":n\n")
        out = renderer.render(diag)
        assert "  ^" in out
        assert "name it first" in out
        assert "note: see docs" in out

    def test_build_reports_hint(self, runner, tmp_path):
        source = tmp_path / "prog.kst"
        source.write_text("main () int { :x }\n")
        result = runner.invoke(main, ["--no-color", "build", str(source)])
        assert result.exit_code == 1
        assert "parameters are named with `args!`" in result.output

    def test_render_label_message_and_notes(self):
        start = Location(index=0, line=0, column=0, offset=0)
        end = Location(index=4, line=0, column=4, offset=4)
        diag = Diagnostic(
            Severity.ERROR, "E300", "unknown type",
            filename="b.kst",
            labels=[DiagnosticLabel(Span(start, end), "not a known type")],
            notes=["known types are int, char, bool"],
        )
        renderer = DiagnosticRenderer(color=False)
        renderer.add_source("b.kst", "real x\n")
        out = renderer.render(diag)
        assert "^^^^" in out
        assert "not a known type" in out
        assert "note: known types are int, char, bool" in out

    def test_missing_source_file(self):
        renderer = DiagnosticRenderer(color=False)
        diag = Error(Location.zero(), "boom").to_diagnostic("/nonexistent/x.kst")
        out = renderer.render(diag)
        assert "--> /nonexistent/x.kst:1:1" in out

    def test_compile_error_message(self):
        diags = [Error(Location.zero(), "one").to_diagnostic(), Error(Location.zero(), "two").to_diagnostic()]
        err = CompileError(diags)
        assert str(err) == "2 error(s): one; two"
