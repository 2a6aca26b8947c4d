"""Tests for the scriptlex command line."""

import pytest

from scriptlex.cli import main


def run(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


def test_dump_tokens(script_dir, capsys):
    path = script_dir.write("main.txt", 'model "my model"\n\nscale 2\n')

    assert run([str(path)]) == 0
    assert capsys.readouterr().out.splitlines() == [
        f"{path}:1: model",
        f"{path}:1: my model",
        f"{path}:3: scale",
        f"{path}:3: 2",
    ]


def test_expression_mode(script_dir, capsys):
    path = script_dir.write("expr.txt", "a+b")

    assert run([str(path), "--expr"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert [line.split(": ", 1)[1] for line in out] == ["a", "+", "b"]


def test_defines(script_dir, capsys):
    path = script_dir.write("main.txt", "$out$/$name$")

    assert run([str(path), "-D", "out=build", "--define", "name=x.mdl"]) == 0
    assert capsys.readouterr().out.strip() == f"{path}:1: build/x.mdl"


def test_bad_define(script_dir, capsys):
    path = script_dir.write("main.txt", "a")
    assert run([str(path), "-D", "novalue"]) == 2


def test_deps(script_dir, capsys):
    main_path = script_dir.write("main.txt", "a\n$include parts/child.txt\n")
    script_dir.write("parts/child.txt", "$include leaf.txt")
    script_dir.write("leaf.txt", "b")

    assert run([str(main_path), "--base", str(script_dir.root), "--deps"]) == 0
    child = script_dir.path("parts/child.txt")
    assert capsys.readouterr().out.splitlines() == [
        str(main_path),
        f"  {child} ({main_path}:2)",
        f"    {script_dir.path('leaf.txt')} ({child}:1)",
    ]


def test_error_exit_status(script_dir, capsys):
    path = script_dir.write("main.txt", "a $missing$")

    assert run([str(path)]) == 1
    captured = capsys.readouterr()
    assert "Error:" in captured.err
    assert "unknown variable token" in captured.err


def test_verbose_logging(script_dir, capsys):
    script_dir.write("child.txt", "b")
    path = script_dir.write("main.txt", "a $include child.txt")

    assert run([str(path), "--base", str(script_dir.root), "--verbose"]) == 0
    err = capsys.readouterr().err
    assert f"[scriptlex] entering {script_dir.path('child.txt')}" in err
    assert "[scriptlex] 2 tokens" in err


def test_max_depth(script_dir, capsys):
    path = script_dir.write("loop.txt", "$include loop.txt")

    assert run([str(path), "--base", str(script_dir.root), "--max-depth", "4"]) == 1
    assert "MAX_INCLUDES (4)" in capsys.readouterr().err
