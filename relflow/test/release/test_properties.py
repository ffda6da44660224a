"""Tests for relflow.release.properties."""

from relflow.release import properties


def test_loads_separators_and_comments() -> None:
    text = "\n".join(
        [
            "# comment",
            "! also a comment",
            "",
            "a=1",
            "b : 2",
            "c 3",
            "   d=indented",
            "empty=",
        ]
    )
    assert properties.loads(text) == {"a": "1", "b": "2", "c": "3", "d": "indented", "empty": ""}


def test_loads_continuation_lines() -> None:
    text = "goals = clean \\\n    install\nnext=x\n"
    assert properties.loads(text) == {"goals": "clean install", "next": "x"}


def test_loads_escapes() -> None:
    text = "path=C\\:\\\\work\nname=caf\\u00e9\nkey\\ with\\ spaces=v\ntab=a\\tb\n"
    assert properties.loads(text) == {
        "path": "C:\\work",
        "name": "café",
        "key with spaces": "v",
        "tab": "a\tb",
    }


def test_later_duplicates_win() -> None:
    assert properties.loads("a=1\na=2\n") == {"a": "2"}


def test_dumps_is_sorted_and_commented() -> None:
    text = properties.dumps({"b": "2", "a": "1"}, "release configuration")
    lines = text.splitlines()
    assert lines[0] == "#release configuration"
    assert lines[1].startswith("#")
    assert lines[2:] == ["a=1", "b=2"]


def test_dumps_then_loads_preserves_special_values() -> None:
    values = {
        "scm.url": "scm:git:https://example.org/acme/widget.git",
        "project.rel.org.acme:widget": "1.0",
        "scm.commentPrefix": " [release] ",
        "multi": "line one\nline two",
        "unicode": "naïve",
    }
    assert properties.loads(properties.dumps(values)) == values


def test_supplementary_characters_use_surrogate_pairs() -> None:
    text = properties.dumps({"comment": "ship 🚀"})
    assert text.splitlines()[-1] == "comment=ship \\ud83d\\ude80"
    assert properties.loads(text) == {"comment": "ship 🚀"}


def test_lone_escaped_surrogate_is_kept() -> None:
    assert properties.loads("a=\\ud83dx\n") == {"a": "\ud83dx"}
