"""
Tests for ExpansionEngine: reference resolution, indentation and cycle
detection.
"""
from __future__ import annotations

import pytest

from tangler.errors import RecursiveChunkError, UndefinedChunkError
from tangler.expansion.expansion_engine import (
    ExpansionEngine,
    find_references,
    indent_lines,
)
from tangler.models import Namespace, SourcePosition
from tangler.registry.chunk_registry import ChunkRegistry


def _engine(files=None, chunks=None) -> ExpansionEngine:
    registry = ChunkRegistry()
    line = 1
    for name, body in (files or {}).items():
        registry.define_or_append(Namespace.FILE, name, body, SourcePosition("doc.w", line))
        line += 10
    for name, body in (chunks or {}).items():
        registry.define_or_append(Namespace.CODE, name, body, SourcePosition("doc.w", line))
        line += 10
    return ExpansionEngine(registry)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


class TestFindReferences:
    def test_no_references(self):
        assert find_references("plain text @ and @< alone") == []

    def test_multiple_references_left_to_right(self):
        refs = find_references("  a @<one@> b @<two words@> c")
        assert [r.name for r in refs] == ["one", "two words"]
        assert refs[0].leading_text == "  a "
        assert not refs[0].is_indented

    def test_indented_reference(self):
        (ref,) = find_references("\t  @<x@>")
        assert ref.is_indented
        assert ref.leading_text == "\t  "
        assert (ref.start, ref.end) == (3, 8)

    def test_indent_lines_covers_every_line(self):
        assert indent_lines("  ", "a\n\nb") == "  a\n  \n  b"


# ─────────────────────────────────────────────────────────────────────────────
# ExpansionEngine
# ─────────────────────────────────────────────────────────────────────────────


class TestExpansionEngine:
    def test_body_without_references_unchanged(self):
        body = "line one\n  line two\n\n@ not a ref @<incomplete"
        engine = _engine(files={"out.txt": body})
        assert engine.expand_file("out.txt") == body

    def test_simple_substitution(self):
        engine = _engine(files={"out.txt": "hello @<name@>"}, chunks={"name": "world"})
        assert engine.expand_file("out.txt") == "hello world"

    def test_indentation_propagated(self):
        engine = _engine(files={"out.txt": "    @<A@>"}, chunks={"A": "x\ny"})
        assert engine.expand_file("out.txt") == "    x\n    y"

    def test_non_blank_leading_text_prepended_once(self):
        engine = _engine(files={"out.txt": "x = @<A@>"}, chunks={"A": "1\n2"})
        assert engine.expand_file("out.txt") == "x = 1\n2"

    def test_indentation_accumulates_through_nesting(self):
        engine = _engine(
            files={"out.py": "def f():\n    @<body@>"},
            chunks={"body": "if x:\n    @<inner@>", "inner": "a()\nb()"},
        )
        assert engine.expand_file("out.py") == (
            "def f():\n"
            "    if x:\n"
            "        a()\n"
            "        b()"
        )

    def test_several_references_on_one_line(self):
        engine = _engine(
            files={"out.txt": "  @<a@>-@<b@>-@<a@>!"},
            chunks={"a": "A", "b": "B1\nB2"},
        )
        # only the first reference is indented
        assert engine.expand_file("out.txt") == "  A-B1\nB2-A!"

    def test_same_chunk_on_sibling_lines_resolved_independently(self):
        engine = _engine(
            files={"out.txt": "@<a@>\n    @<a@>"},
            chunks={"a": "p\nq"},
        )
        assert engine.expand_file("out.txt") == "p\nq\n    p\n    q"

    def test_deep_nesting_leaves_no_tokens(self):
        chunks = {f"c{i}": f"@<c{i + 1}@>" for i in range(30)}
        chunks["c30"] = "bottom"
        engine = _engine(files={"out.txt": "@<c0@>"}, chunks=chunks)
        result = engine.expand_file("out.txt")
        assert result == "bottom"
        assert "@<" not in result

    def test_empty_chunk_resolves_to_nothing(self):
        engine = _engine(files={"out.txt": "a@<e@>b\n  @<e@>"}, chunks={"e": ""})
        assert engine.expand_file("out.txt") == "ab\n  "

    def test_result_has_no_trailing_newline(self):
        engine = _engine(files={"out.txt": "@<a@>"}, chunks={"a": "x\n"})
        assert engine.expand_file("out.txt") == "x\n"
        engine = _engine(files={"out.txt": "@<a@>"}, chunks={"a": "x"})
        assert not engine.expand_file("out.txt").endswith("\n")

    def test_registry_not_mutated(self):
        engine = _engine(files={"out.txt": "@<a@>"}, chunks={"a": "@<b@>", "b": "z"})
        engine.expand_file("out.txt")
        assert engine.registry.lookup(Namespace.FILE, "out.txt") == "@<a@>"
        assert engine.registry.lookup(Namespace.CODE, "a") == "@<b@>"

    def test_reference_to_file_block_name_is_undefined(self):
        engine = _engine(files={"out.txt": "@<out.txt@>"})
        with pytest.raises(UndefinedChunkError):
            engine.expand_file("out.txt")

    def test_expand_all_in_definition_order(self):
        engine = _engine(
            files={"b.txt": "@<x@>", "a.txt": "plain"},
            chunks={"x": "X"},
        )
        assert list(engine.expand_all().items()) == [("b.txt", "X"), ("a.txt", "plain")]

    def test_expand_chunk(self):
        engine = _engine(chunks={"a": "<@<b@>>", "b": "B"})
        assert engine.expand_chunk("a") == "<B>"

    def test_unknown_file_raises_key_error(self):
        with pytest.raises(KeyError):
            _engine().expand_file("nope.txt")

    # -- undefined chunks -------------------------------------------------

    def test_undefined_top_level(self):
        engine = _engine(files={"out.txt": "x\n  @<missing@>"})
        with pytest.raises(UndefinedChunkError) as exc_info:
            engine.expand_file("out.txt")
        err = exc_info.value
        assert err.name == "missing"
        assert "used but not defined" in str(err)
        assert "file block 'out.txt'" in str(err)
        assert err.position == SourcePosition("doc.w", 3)

    def test_undefined_nested(self):
        engine = _engine(files={"out.txt": "@<a@>"}, chunks={"a": "ok\n@<b@>", "b": "@<gone@>"})
        with pytest.raises(UndefinedChunkError) as exc_info:
            engine.expand_file("out.txt")
        assert exc_info.value.name == "gone"
        assert "code block 'b'" in str(exc_info.value)

    def test_undefined_later_on_a_line(self):
        engine = _engine(files={"out.txt": "@<a@> @<missing@>"}, chunks={"a": "A"})
        with pytest.raises(UndefinedChunkError):
            engine.expand_file("out.txt")

    def test_undefined_cites_line_within_nested_chunk(self):
        # a is defined at doc.w:11, so its third body line is doc.w:14
        engine = _engine(files={"out.txt": "@<a@>"}, chunks={"a": "one\ntwo\n@<gone@>"})
        with pytest.raises(UndefinedChunkError) as exc_info:
            engine.expand_file("out.txt")
        assert exc_info.value.position == SourcePosition("doc.w", 14)
        assert str(exc_info.value).startswith("doc.w:14: ")

    def test_error_line_in_later_definition(self):
        registry = ChunkRegistry()
        registry.define_or_append(Namespace.FILE, "out.txt", "fine", SourcePosition("doc.w", 1))
        registry.define_or_append(
            Namespace.FILE, "out.txt", "also fine\n@<gone@>", SourcePosition("doc.w", 40)
        )
        with pytest.raises(UndefinedChunkError) as exc_info:
            ExpansionEngine(registry).expand_file("out.txt")
        assert exc_info.value.position == SourcePosition("doc.w", 42)

    # -- cycles -------------------------------------------------------------

    def test_direct_self_reference(self):
        engine = _engine(files={"out.txt": "@<a@>"}, chunks={"a": "x\n@<a@>"})
        with pytest.raises(RecursiveChunkError) as exc_info:
            engine.expand_file("out.txt")
        assert exc_info.value.name == "a"
        assert "expands itself recursively" in str(exc_info.value)
        # the self-reference sits on the second line of a (defined at doc.w:11)
        assert exc_info.value.position == SourcePosition("doc.w", 13)

    @pytest.mark.parametrize("length", [2, 3, 7])
    def test_indirect_cycle(self, length):
        chunks = {f"c{i}": f"@<c{(i + 1) % length}@>" for i in range(length)}
        engine = _engine(files={"out.txt": "@<c0@>"}, chunks=chunks)
        with pytest.raises(RecursiveChunkError) as exc_info:
            engine.expand_file("out.txt")
        assert exc_info.value.name == "c0"

    def test_cycle_behind_literal_text(self):
        engine = _engine(
            files={"out.txt": "start @<a@> end"},
            chunks={"a": "one\n  two @<b@>", "b": "@<e@>@<a@>", "e": ""},
        )
        with pytest.raises(RecursiveChunkError) as exc_info:
            engine.expand_file("out.txt")
        assert exc_info.value.name == "a"

    def test_expand_chunk_detects_self_reference(self):
        engine = _engine(chunks={"a": "@<a@>"})
        with pytest.raises(RecursiveChunkError):
            engine.expand_chunk("a")

    def test_marker_cleared_for_each_reference(self):
        # b is used twice on the same line inside a; neither use may leave
        # b (or a) marked once it has been resolved
        engine = _engine(
            files={"out.txt": "@<a@>\n@<b@>"},
            chunks={"a": "@<b@>+@<b@>", "b": "B"},
        )
        assert engine.expand_file("out.txt") == "B+B\nB"

    def test_diamond_is_not_a_cycle(self):
        engine = _engine(
            files={"out.txt": "@<top@>"},
            chunks={"top": "@<left@>\n@<right@>", "left": "@<base@>", "right": "@<base@>", "base": "b"},
        )
        assert engine.expand_file("out.txt") == "b\nb"

    def test_state_reset_between_files(self):
        engine = _engine(
            files={"one.txt": "@<a@>", "two.txt": "@<a@>"},
            chunks={"a": "A"},
        )
        assert engine.expand_all() == {"one.txt": "A", "two.txt": "A"}
