import pytest

from semantic_context.cli import main


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_query_command(order_project, capsys):
    assert _run(["query", "order processing", "--path", str(order_project)]) == 0
    out = capsys.readouterr().out
    assert "Context for: order processing" in out
    assert "a.ts" in out
    assert "b.ts" in out


def test_analyze_command(order_project, capsys):
    assert _run(["analyze", "a.ts", "--path", str(order_project)]) == 0
    out = capsys.readouterr().out
    assert "processOrder" in out
    assert "./b  (local)" in out


def test_related_command(order_project, capsys):
    assert _run(["related", "b.ts", "--path", str(order_project)]) == 0
    assert "← a.ts" in capsys.readouterr().out


def test_unknown_file_exits_nonzero(order_project, capsys):
    assert _run(["analyze", "nope.ts", "--path", str(order_project)]) == 1
    assert "File not indexed: nope.ts" in capsys.readouterr().out


def test_stats_command(order_project, capsys):
    assert _run(["stats", str(order_project)]) == 0
    out = capsys.readouterr().out
    assert "Files:      2" in out
    assert "Domains:    5" in out
