from backend.src.services.link_parser import (
    CONTEXT_WINDOW,
    extract_note_mentions,
    parse_links,
)


def test_parse_single_link_with_offsets():
    content = "See [[Project Plan]] for details."

    links = parse_links(content)

    assert len(links) == 1
    link = links[0]
    assert link.text == "Project Plan"
    assert content[link.start:link.end] == "[[Project Plan]]"
    assert link.start == 4
    assert link.context == content


def test_parse_returns_empty_for_plain_text():
    assert parse_links("no links here") == []
    assert parse_links("") == []
    assert parse_links(None) == []


def test_links_are_returned_in_order():
    links = parse_links("[[B]] then [[A]] then [[B]]")

    assert [link.text for link in links] == ["B", "A", "B"]
    assert [link.start for link in links] == [0, 11, 22]


def test_context_is_clamped_to_window():
    prefix = "x" * 80
    suffix = "y" * 80
    content = f"{prefix}[[Target]]{suffix}"

    (link,) = parse_links(content)

    assert link.context == "x" * CONTEXT_WINDOW + "[[Target]]" + "y" * CONTEXT_WINDOW


def test_unclosed_and_empty_markers_are_ignored():
    assert parse_links("[[Unclosed and [single] and [[]]") == []
    assert [link.text for link in parse_links("[[a]b]] [[ok]]")] == ["ok"]


def test_extract_note_mentions_dedupes_in_first_seen_order():
    content = "[[Beta]] [[Alpha]] [[Beta]] [[  ]] [[Gamma]]"

    assert extract_note_mentions(content) == ["Beta", "Alpha", "Gamma"]
