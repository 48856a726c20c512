"""
Tests for ChunkRegistry.
"""
from __future__ import annotations

import json

import pytest

from tangler.models import Namespace, SourcePosition
from tangler.registry.chunk_registry import ChunkRegistry


def _pos(line: int) -> SourcePosition:
    return SourcePosition("doc.w", line)


class TestChunkRegistry:
    @pytest.fixture
    def registry(self):
        return ChunkRegistry()

    def test_define_and_lookup(self, registry):
        registry.define_or_append(Namespace.CODE, "a", "x\ny", _pos(1))
        assert registry.lookup(Namespace.CODE, "a") == "x\ny"

    def test_lookup_missing_raises_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.lookup(Namespace.CODE, "missing")
        assert registry.get(Namespace.CODE, "missing") is None

    def test_append_joins_with_single_newline(self, registry):
        registry.define_or_append(Namespace.CODE, "a", "one\ntwo", _pos(1))
        registry.define_or_append(Namespace.CODE, "a", "three", _pos(8))
        assert registry.lookup(Namespace.CODE, "a") == "one\ntwo\nthree"
        assert registry.get(Namespace.CODE, "a").positions == [_pos(1), _pos(8)]

    def test_append_empty_body(self, registry):
        registry.define_or_append(Namespace.CODE, "a", "x", _pos(1))
        registry.define_or_append(Namespace.CODE, "a", "", _pos(4))
        assert registry.lookup(Namespace.CODE, "a") == "x\n"

    def test_namespaces_independent(self, registry):
        registry.define_or_append(Namespace.FILE, "a", "file", _pos(1))
        registry.define_or_append(Namespace.CODE, "a", "code", _pos(5))
        assert registry.lookup(Namespace.FILE, "a") == "file"
        assert registry.lookup(Namespace.CODE, "a") == "code"
        assert len(registry) == 2

    def test_names_in_first_definition_order(self, registry):
        for line, name in enumerate(["b.txt", "a.txt", "b.txt", "c.txt"], 1):
            registry.define_or_append(Namespace.FILE, name, "", _pos(line))
        assert registry.names(Namespace.FILE) == ["b.txt", "a.txt", "c.txt"]
        assert registry.names(Namespace.CODE) == []

    def test_contains(self, registry):
        registry.define_or_append(Namespace.CODE, "a", "", _pos(1))
        assert registry.contains(Namespace.CODE, "a")
        assert not registry.contains(Namespace.FILE, "a")

    def test_to_dict_is_json_serialisable(self, registry):
        registry.define_or_append(Namespace.FILE, "out.txt", "@<a@>", _pos(1))
        registry.define_or_append(Namespace.CODE, "a", "x", _pos(4))
        data = json.loads(json.dumps(registry.to_dict()))
        assert data["files"][0]["name"] == "out.txt"
        assert data["chunks"][0]["body"] == "x"
        assert data["chunks"][0]["positions"] == [{"source": "doc.w", "line": 4}]

    def test_line_positions_default_to_following_lines(self, registry):
        registry.define_or_append(Namespace.CODE, "a", "x\ny", _pos(4))
        block = registry.get(Namespace.CODE, "a")
        assert block.line_positions == [_pos(5), _pos(6)]

    def test_line_positions_extended_on_append(self, registry):
        registry.define_or_append(Namespace.CODE, "a", "x", _pos(1), line_positions=[_pos(2)])
        registry.define_or_append(Namespace.CODE, "a", "y", _pos(9), line_positions=[_pos(12)])
        block = registry.get(Namespace.CODE, "a")
        assert block.line_position(1) == _pos(12)
        assert block.line_position(5) == _pos(1)

    def test_line_positions_must_match_body(self, registry):
        with pytest.raises(ValueError):
            registry.define_or_append(Namespace.CODE, "a", "x\ny", _pos(1), line_positions=[_pos(2)])
