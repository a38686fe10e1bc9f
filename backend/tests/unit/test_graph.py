import pytest

from backend.src.models.note import NoteCreate
from backend.src.models.taxonomy import CategoryCreate, TagCreate
from backend.src.services.graph import MAX_NODE_SIZE, MIN_NODE_SIZE, node_color, node_size


def _create(note_service, title, content="", **kwargs):
    return note_service.create_note("alice", NoteCreate(title=title, content=content, **kwargs))


@pytest.mark.parametrize(
    "outgoing, incoming, expected",
    [(0, 0, MIN_NODE_SIZE), (3, 2, 30), (10, 5, MAX_NODE_SIZE), (100, 0, MAX_NODE_SIZE)],
)
def test_node_size_is_clamped(outgoing, incoming, expected):
    assert node_size(outgoing, incoming) == expected


def test_node_color_priority():
    assert node_color("#111111", ["#222222"], "#333333") == "#111111"
    assert node_color(None, ["#222222", "#444444"], "#333333") == "#222222"
    assert node_color(None, [None, "#444444"], "#333333") == "#333333"
    assert node_color(None, [], "#333333") == "#333333"


def test_hub_node_size_reflects_degree(note_service, projector):
    for title in ("Alpha", "Beta", "Gamma"):
        _create(note_service, title)
    hub = _create(note_service, "Hub", "[[Alpha]] [[Beta]] [[Gamma]]")
    _create(note_service, "Source one", "[[Hub]]")
    _create(note_service, "Source two", "[[Hub]]")

    graph = projector.get_graph_data("alice")

    nodes = {node.id: node for node in graph.nodes}
    assert nodes[hub.id].size == 30
    assert nodes[hub.id].label == "Hub"
    assert len(graph.edges) == 5
    assert all(edge.arrows == "to" and edge.value == 1 for edge in graph.edges)


def test_duplicate_links_produce_one_edge(note_service, projector, link_rows):
    beta = _create(note_service, "Beta")
    alpha = _create(note_service, "Alpha", "[[Beta]] and again [[Beta]]")

    graph = projector.get_graph_data("alice")

    assert len(link_rows(alpha.id)) == 2
    assert [(edge.from_, edge.to) for edge in graph.edges] == [(alpha.id, beta.id)]
    assert graph.edges[0].id.startswith("edge-")


def test_category_filter_drops_edges_to_hidden_notes(note_service, projector, taxonomy):
    work = taxonomy.create_category(CategoryCreate(name="Work", color="#ef4444"))
    alpha = _create(note_service, "Alpha", category_id=work.id)
    _create(note_service, "Beta")
    hub = _create(note_service, "Hub", "[[Alpha]] [[Beta]]", category_id=work.id)

    graph = projector.get_graph_data("alice", category_id=work.id)

    assert {node.id for node in graph.nodes} == {alpha.id, hub.id}
    assert [(edge.from_, edge.to) for edge in graph.edges] == [(hub.id, alpha.id)]
    assert all(node.color == "#ef4444" for node in graph.nodes)
    assert all(node.category == "Work" for node in graph.nodes)


def test_tag_filter_and_tag_color(note_service, projector, taxonomy):
    idea = taxonomy.create_tag(TagCreate(name="idea", color="#22c55e"))
    tagged = _create(note_service, "Tagged", tag_ids=[idea.id])
    plain = _create(note_service, "Plain")

    graph = projector.get_graph_data("alice", tag_ids=[idea.id])
    assert [node.id for node in graph.nodes] == [tagged.id]
    assert graph.nodes[0].color == "#22c55e"
    assert graph.nodes[0].tags == ["idea"]

    full = {node.id: node for node in projector.get_graph_data("alice").nodes}
    assert full[plain.id].color == "#3b82f6"


def test_graph_is_scoped_to_user(note_service, projector):
    _create(note_service, "Mine")
    note_service.create_note("bob", NoteCreate(title="Theirs"))

    graph = projector.get_graph_data("alice")

    assert [node.label for node in graph.nodes] == ["Mine"]


def test_filter_options_only_include_used_taxonomy(note_service, projector, taxonomy):
    used = taxonomy.create_category(CategoryCreate(name="Used"))
    taxonomy.create_category(CategoryCreate(name="Unused"))
    tag = taxonomy.create_tag(TagCreate(name="t1"))
    _create(note_service, "Note", category_id=used.id, tag_ids=[tag.id])

    filters = projector.get_filter_options("alice")

    assert [option.name for option in filters.categories] == ["Used"]
    assert [option.id for option in filters.tags] == [tag.id]
