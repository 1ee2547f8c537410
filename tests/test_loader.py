# tests/test_loader.py
"""
Tests for the JSON input loader.
"""

import json

import pytest

from halbypass.callgraph import CallResolutionKind
from halbypass.errors import LoadError
from halbypass.loader import load, load_dict

DOC = {
    "functions": [
        {"id": "f0", "name": "HAL_GPIO_Init", "file": "gpio.c",
         "directory": "/proj/drivers"},
        {"id": "f1", "name": "main", "linkage_name": "main",
         "file": "main.c", "directory": "/proj/app"},
        {"name": "stub", "debug": False},
    ],
    "calls": [
        {"caller": "f1", "callee": "f0", "line": 12},
        {"caller": "f1", "callee": "f0", "line": 13},
        {"caller": "f1", "indirect": True},
        {"caller": "stub"},
    ],
    "mmio": [
        {"function": "f0",
         "location": {"file": "gpio.c", "directory": "/proj/drivers",
                      "line": 40, "column": 7,
                      "inlined_at": {"file": "main.c",
                                     "directory": "/proj/app",
                                     "line": 9}}},
        {"function": "f0",
         "location": {"file": "gpio.c", "directory": "/proj/drivers",
                      "line": 99}},
    ],
}


class TestLoadDict:

    def test_functions(self):
        cg, _ = load_dict(DOC)
        assert [f.id for f in cg.functions] == ["f0", "f1", "stub"]
        init = cg.get("f0")
        assert init.name == "HAL_GPIO_Init"
        assert init.subprogram.linkage_name == "HAL_GPIO_Init"
        assert init.subprogram.file.source_directory == "/proj/drivers"
        assert cg.get("stub").subprogram is None

    def test_calls(self):
        cg, _ = load_dict(DOC)
        kinds = [e.resolution for e in cg.edges]
        assert kinds == [CallResolutionKind.DIRECT] * 2 + \
            [CallResolutionKind.INDIRECT] * 2
        assert [e.line for e in cg.edges[:2]] == [12, 13]
        assert cg.edges[2].callee is cg.external
        assert cg.edges[3].callee is cg.external

    def test_registry_keeps_first_location(self):
        cg, registry = load_dict(DOC)
        loc = registry[cg.get("f0")]
        assert len(registry) == 1
        assert loc.line == 40
        assert str(loc) == (
            "/proj/drivers/gpio.c:40:7 @[ /proj/app/main.c:9 ]")

    def test_empty_document(self):
        cg, registry = load_dict({})
        assert cg.functions == []
        assert registry == {}


class TestLoadErrors:

    @pytest.mark.parametrize("doc,path", [
        ([], "$"),
        ({"functions": {}}, "functions"),
        ({"functions": [{"id": "x"}]}, "functions[0]"),
        ({"functions": [{"name": 3}]}, "functions[0].name"),
        ({"functions": [{"name": "a"}, {"name": "a"}]}, "functions[1]"),
        ({"functions": [{"name": "a"}],
          "calls": [{"caller": "a", "callee": "b"}]}, "calls[0].callee"),
        ({"functions": [{"name": "a"}],
          "calls": [{"caller": "a", "callee": "a", "line": "7"}]},
         "calls[0].line"),
        ({"functions": [{"name": "a"}],
          "mmio": [{"function": "a"}]}, "mmio[0]"),
        ({"functions": [{"name": "a"}],
          "mmio": [{"function": "zz", "location": {"file": "a.c"}}]},
         "mmio[0].function"),
        ({"functions": [{"name": "a"}],
          "mmio": [{"function": "a", "location": {"file": "a.c",
                                                  "line": True}}]},
         "mmio[0].location.line"),
        ({"functions": [{"name": "a", "debug": "false"}]},
         "functions[0].debug"),
    ])
    def test_error_path(self, doc, path):
        with pytest.raises(LoadError) as excinfo:
            load_dict(doc)
        assert excinfo.value.path == path

    def test_external_id_is_not_a_function(self):
        doc = {"functions": [{"name": "a"}],
               "mmio": [{"function": "__EXTERNAL__",
                         "location": {"file": "a.c"}}]}
        with pytest.raises(LoadError):
            load_dict(doc)


class TestLoadFile:

    def test_round_trip_through_file(self, tmp_path):
        src = tmp_path / "graph.json"
        src.write_text(json.dumps(DOC), encoding="utf-8")
        cg, registry = load(src)
        assert len(registry) == 1
        assert len(cg.edges) == 4

    def test_undecodable_bytes(self, tmp_path):
        src = tmp_path / "latin1.json"
        src.write_bytes(b'{"functions": [{"name": "\xff"}]}')
        with pytest.raises(LoadError) as excinfo:
            load(src)
        assert excinfo.value.source == str(src)
        assert "invalid JSON" in str(excinfo.value)

    def test_invalid_json(self, tmp_path):
        src = tmp_path / "broken.json"
        src.write_text("{not json", encoding="utf-8")
        with pytest.raises(LoadError) as excinfo:
            load(src)
        assert str(src) in str(excinfo.value)

    def test_error_mentions_source(self, tmp_path):
        src = tmp_path / "bad.json"
        src.write_text(json.dumps({"functions": [{}]}), encoding="utf-8")
        with pytest.raises(LoadError) as excinfo:
            load(src)
        assert str(excinfo.value).startswith(f"{src}: functions[0]: ")
