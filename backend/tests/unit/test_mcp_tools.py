import asyncio
import json

import pytest
from fastmcp import Client

from backend.src.mcp import server
from backend.src.services.graph import GraphProjector
from backend.src.services.notes import NoteService


@pytest.fixture
def mcp_services(monkeypatch, db_service):
    monkeypatch.setenv("LOCAL_USER_ID", "mcp-user")
    notes = NoteService(db_service)
    monkeypatch.setattr(server, "note_service", notes)
    monkeypatch.setattr(server, "graph_projector", GraphProjector(db_service, default_color="#3b82f6"))
    return notes


def _call(name, arguments):
    async def _run():
        async with Client(server.mcp) as client:
            result = await client.call_tool(name, arguments)
        return json.loads(result.content[0].text)

    return asyncio.run(_run())


def test_write_note_creates_and_updates(mcp_services):
    target = _call("write_note", {"title": "Roadmap"})
    created = _call("write_note", {"title": "Plan", "content": "No links yet"})

    updated = _call("write_note", {"note_id": created["id"], "content": "See [[Roadmap]]"})

    assert created["user_id"] == "mcp-user"
    assert updated["title"] == "Plan"
    assert updated["counts"]["links"] == 1
    backlinks = mcp_services.get_backlinks("mcp-user", target["id"])
    assert [link.note_id for link in backlinks] == [created["id"]]


def test_read_note_and_graph(mcp_services):
    roadmap = _call("write_note", {"title": "Roadmap"})
    plan = _call("write_note", {"title": "Plan", "content": "[[Roadmap]]"})

    note = _call("read_note", {"note_id": roadmap["id"]})
    graph = _call("get_graph", {})

    assert note["counts"]["backlinks"] == 1
    assert graph["edges"][0]["from"] == plan["id"]
    assert graph["edges"][0]["to"] == roadmap["id"]
