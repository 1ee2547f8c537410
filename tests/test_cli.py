# tests/test_cli.py
"""
Tests for the hal-bypass command-line tool.
"""

import json

import pytest

from halbypass import __version__
from halbypass.__main__ import build_parser, main


def _write_graph(tmp_path):
    roots = [{"name": f"task{i}"} for i in range(10)]
    doc = {
        "functions": roots + [
            {"name": "uart_putc", "file": "uart.c", "directory": "/fw/bsp"},
            {"name": "uart_init", "file": "uart.c", "directory": "/fw/bsp"},
            {"name": "HAL_Delay", "file": "delay.c", "directory": "/fw/hal"},
            {"name": "blink", "file": "main.c", "directory": "/fw/app"},
        ],
        "calls": [{"caller": r["name"], "callee": "uart_putc"} for r in roots]
        + [{"caller": "blink", "callee": "HAL_Delay"}],
        "mmio": [
            {"function": "uart_putc",
             "location": {"file": "uart.c", "directory": "/fw/bsp",
                          "line": 14, "column": 3}},
            {"function": "uart_init",
             "location": {"file": "uart.c", "directory": "/fw/bsp",
                          "line": 30}},
            {"function": "blink",
             "location": {"file": "main.c", "directory": "/fw/app",
                          "line": 7}},
            {"function": "HAL_Delay",
             "location": {"file": "delay.c", "directory": "/fw/hal",
                          "line": 5}},
        ],
    }
    path = tmp_path / "fw.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["in.json"])
        assert args.format == "text"
        assert args.closure == "warshall"
        assert args.partition == "name"
        assert args.output is None
        assert args.verbose == 0

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:

    def test_text_report(self, tmp_path, capsys):
        assert main([str(_write_graph(tmp_path)), "--no-color"]) == 0
        out = capsys.readouterr().out
        assert "Application MMIO functions (# = 3)" in out
        assert "HAL MMIO functions (# = 1)" in out
        assert "uart_putc /fw/bsp/uart.c:14:3 10 10 1" in out
        assert "uart_init /fw/bsp/uart.c:30 0 0 1" in out
        assert "blink /fw/app/main.c:7 0 0 0" in out

    def test_json_report_to_file(self, tmp_path, capsys):
        dest = tmp_path / "report.json"
        rc = main([str(_write_graph(tmp_path)), "--format", "json",
                   "-o", str(dest), "--closure", "bfs"])
        assert rc == 0
        assert capsys.readouterr().out == ""
        doc = json.loads(dest.read_text(encoding="utf-8"))
        assert doc["hal_directories"] == ["/fw/bsp"]

    def test_partition_by_directory(self, tmp_path, capsys):
        rc = main([str(_write_graph(tmp_path)), "--partition", "directory",
                   "--format", "json"])
        assert rc == 0
        doc = json.loads(capsys.readouterr().out)
        app, hal = doc["sections"]
        assert [f["name"] for f in hal["functions"]] == [
            "uart_putc", "uart_init"]

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "absent.json")]) == 1
        assert "error" in capsys.readouterr().err

    def test_malformed_input(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text('{"functions": [{"id": 1}]}', encoding="utf-8")
        assert main([str(bad)]) == 1
        assert "functions[0]" in capsys.readouterr().err

    def test_unwritable_output(self, tmp_path, capsys):
        dest = tmp_path / "nodir" / "out.txt"
        assert main([str(_write_graph(tmp_path)), "-o", str(dest)]) == 1
        err = capsys.readouterr().err
        assert err.startswith("hal-bypass: error: ")
        assert "internal error" not in err

    def test_input_not_utf8(self, tmp_path, capsys):
        bad = tmp_path / "latin1.json"
        bad.write_bytes(b'{"functions": [{"name": "\xff"}]}')
        assert main([str(bad)]) == 1
        err = capsys.readouterr().err
        assert "invalid JSON" in err
        assert "internal error" not in err
