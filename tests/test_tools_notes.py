from conftest import make_article


def test_add_note_to_backlog_and_article(env, call_tool):
    article = make_article(env.store, title="Issue 7")
    backlog = call_tool("add_note", {"type": "idea", "content": "Follow the money", "tags": ["finance"]})
    attached = call_tool("add_note", {"type": "fact", "content": "Revenue +12%", "target_article": article["id"],
                                      "priority": 1})

    assert backlog["message"] == "Note added to backlog"
    assert backlog["tags"] == ["finance"]
    assert backlog["priority"] == 3
    assert attached["message"] == f"Note added for article {article['id']}"


def test_add_note_validates_type_and_priority(call_tool):
    assert call_tool("add_note", {"type": "rant", "content": "x"})["error"]["code"] == 400
    assert call_tool("add_note", {"type": "idea", "content": "x", "priority": 9})["error"]["code"] == 400
    assert call_tool("add_note", {"type": "idea", "content": ""})["error"]["code"] == 400


def test_list_notes_defaults_to_active_and_sorts_by_priority(env, call_tool):
    low = call_tool("add_note", {"type": "idea", "content": "low", "priority": 5})
    high = call_tool("add_note", {"type": "idea", "content": "high", "priority": 1})
    done = call_tool("add_note", {"type": "idea", "content": "done"})
    call_tool("update_note", {"id": done["id"], "status": "used"})

    result = call_tool("list_notes", {})
    assert [n["id"] for n in result["notes"]] == [high["id"], low["id"]]
    assert result["markdown"].endswith("_Test Mark_")

    used = call_tool("list_notes", {"status": "used"})
    assert [n["id"] for n in used["notes"]] == [done["id"]]


def test_list_notes_backlog_and_tag_filters(env, call_tool):
    article = make_article(env.store)
    call_tool("add_note", {"type": "idea", "content": "for article", "target_article": article["id"]})
    call_tool("add_note", {"type": "quote", "content": "in backlog", "tags": ["policy", "eu"]})

    backlog = call_tool("list_notes", {"target_article": "backlog"})
    assert [n["content"] for n in backlog["notes"]] == ["in backlog"]
    tagged = call_tool("list_notes", {"tag": "eu"})
    assert [n["content"] for n in tagged["notes"]] == ["in backlog"]
    assert tagged["notes"][0]["tags"] == ["policy", "eu"]


def test_update_note(env, call_tool):
    article = make_article(env.store)
    note = call_tool("add_note", {"type": "idea", "content": "draft"})
    updated = call_tool("update_note", {"id": note["id"], "content": "final", "target_article": article["id"],
                                        "tags": ["x"]})
    assert updated["content"] == "final"
    assert updated["target_article"] == article["id"]
    assert updated["tags"] == ["x"]

    unassigned = call_tool("update_note", {"id": note["id"], "target_article": "backlog"})
    assert unassigned["target_article"] is None


def test_update_note_errors(call_tool):
    note = call_tool("add_note", {"type": "idea", "content": "x"})
    assert call_tool("update_note", {"id": note["id"]})["error"] == {"code": 400, "message": "No fields to update"}
    assert call_tool("update_note", {"id": "missing", "content": "y"})["error"]["code"] == 404


def test_clear_notes_single(call_tool):
    note = call_tool("add_note", {"type": "todo", "content": "x"})
    assert call_tool("clear_notes", {"id": note["id"]}) == {"deleted": 1, "message": "Note deleted"}
    assert call_tool("clear_notes", {"id": note["id"]})["error"]["code"] == 404


def test_clear_notes_batch_requires_confirm(env, call_tool):
    for content in ("a", "b"):
        note = call_tool("add_note", {"type": "idea", "content": content})
        call_tool("update_note", {"id": note["id"], "status": "discarded"})
    call_tool("add_note", {"type": "idea", "content": "keep"})

    preview = call_tool("clear_notes", {"status": "discarded"})
    assert preview["preview"] is True
    assert preview["count"] == 2
    assert env.store.count("editorial_notes") == 3

    done = call_tool("clear_notes", {"status": "discarded", "confirm": True})
    assert done["deleted"] == 2
    assert env.store.count("editorial_notes") == 1

    assert call_tool("clear_notes", {"status": "used"}) == {"deleted": 0, "message": "No matching notes found"}


def test_clear_notes_needs_selector(call_tool):
    assert call_tool("clear_notes", {})["error"]["code"] == 400
