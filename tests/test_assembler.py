import pytest

from cookbook.assembler import BlockAssembler, State
from cookbook.errors import UnterminatedString


def feed_all(lines):
    asm = BlockAssembler("r.ini", "/abs/r.ini")
    out = []
    for lineno, raw in enumerate(lines, start=1):
        rec = asm.feed(lineno, raw)
        if rec is not None:
            out.append(rec)
    asm.finish()
    return out


def test_plain_line_passes_through_stripped():
    (rec,) = feed_all(["   brief = hello  "])
    assert rec.text == "brief = hello"
    assert rec.value is None
    assert rec.lineno == 1


def test_block_body_has_no_fences():
    (rec,) = feed_all(['key = """', "A", "B", '"""'])
    assert rec.value == "A\nB"
    assert rec.lineno == 1
    assert rec.text.startswith('key = """')


def test_single_line_block_collapses():
    (rec,) = feed_all(['full = """ all on one line """'])
    assert rec.value == "all on one line"


def test_directive_prefix_is_kept():
    (rec,) = feed_all(['step = script """#!/bin/sh', "echo hi", '"""'])
    assert rec.value == "script #!/bin/sh\necho hi"


def test_single_line_directive_block():
    (rec,) = feed_all(['step = info """ hello there """'])
    assert rec.value == "info hello there"


def test_block_keeps_comments_blank_lines_and_indentation():
    (rec,) = feed_all(['full = """', "# not a comment", "", "    indented", '"""'])
    assert rec.value == "# not a comment\n\n    indented"


def test_text_before_closing_fence_is_kept():
    (rec,) = feed_all(['full = """first', 'last"""'])
    assert rec.value == "first\nlast"


def test_lines_after_block_are_normal_again():
    recs = feed_all(['full = """', "x", '"""', "brief = y"])
    assert [r.value for r in recs] == ["x", None]
    assert recs[1].lineno == 4


def test_state_transitions():
    asm = BlockAssembler("r.ini", "/abs/r.ini")
    assert asm.state is State.NORMAL
    assert asm.feed(1, 'full = """') is None
    assert asm.state is State.IN_BLOCK
    assert asm.feed(2, "body") is None
    assert asm.feed(3, '"""') is not None
    assert asm.state is State.NORMAL


def test_unterminated_block_names_starting_line():
    asm = BlockAssembler("r.ini", "/abs/r.ini")
    asm.feed(1, "brief = x")
    asm.feed(2, 'full = """')
    asm.feed(3, "never closed")
    with pytest.raises(UnterminatedString) as exc:
        asm.finish()
    assert exc.value.record.lineno == 2
    assert "line 2" in str(exc.value)


def test_only_script_and_info_may_prefix_a_block():
    recs = feed_all(['brief = TODO """', "next = x"])
    assert [r.text for r in recs] == ['brief = TODO """', "next = x"]
    assert all(r.value is None for r in recs)
    (rec,) = feed_all(['step = info """', "hello", '"""'])
    assert rec.value == "info hello"
