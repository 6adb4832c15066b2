from conftest import make_article


def _seed_brief(env, call_tool):
    article = make_article(env.store, title="Chips", number=12)
    other = make_article(env.store, title="Other", number=13)
    call_tool("add_note", {"type": "fact", "content": "TSMC capex up", "target_article": article["id"], "priority": 1})
    call_tool("add_note", {"type": "angle", "content": "Supply chain risk", "target_article": article["id"]})
    call_tool("add_note", {"type": "idea", "content": "Backlog idea"})
    call_tool("add_note", {"type": "idea", "content": "Other article", "target_article": other["id"]})

    unused = call_tool("save_source", {"url": "https://a", "title": "Fresh report", "target_article": article["id"]})
    used = call_tool("save_source", {"url": "https://b", "title": "Old report", "target_article": article["id"]})
    call_tool("mark_source_used", {"id": used["id"], "article_id": other["id"]})
    dead = call_tool("save_source", {"url": "https://c", "title": "Dead link", "target_article": article["id"]})
    call_tool("deactivate_source", {"id": dead["id"]})
    call_tool("save_source", {"url": "https://d", "title": "Backlog source"})
    return article, unused


def test_prepare_brief_with_backlog(env, call_tool):
    article, _ = _seed_brief(env, call_tool)
    brief = call_tool("prepare_brief", {"target_article": article["id"]})

    assert brief["article_label"] == "#12 Chips"
    assert brief["notes_count"] == 3
    assert brief["notes_by_type"] == {"fact": 1, "angle": 1, "idea": 1}
    assert brief["sources_active_unused"] == 2
    assert brief["sources_used"] == 1
    assert brief["sources_inactive"] == 1

    md = brief["markdown"]
    assert md.startswith("# Brief: #12 Chips")
    assert "- P1 | TSMC capex up" in md
    assert "Backlog idea _(backlog)_" in md
    assert "## Sources: Active & Unused" in md
    assert "~~Old report~~ (used in" in md
    assert "~~Dead link~~ (inactive)" in md
    assert md.endswith("---\n_Test Mark_")


def test_prepare_brief_without_backlog(env, call_tool):
    article, _ = _seed_brief(env, call_tool)
    brief = call_tool("prepare_brief", {"target_article": article["id"], "include_backlog": False})
    assert brief["notes_count"] == 2
    assert brief["sources_active_unused"] == 1


def test_prepare_brief_unknown_article_uses_id_as_label(call_tool):
    brief = call_tool("prepare_brief", {"target_article": "abc123"})
    assert brief["article_label"] == "abc123"
    assert "_No notes for this article_" in brief["markdown"]


def test_get_stats(env, call_tool):
    make_article(env.store, title="A", views=100, open_rate=40.0)
    make_article(env.store, title="B", views=300, open_rate=44.7)
    make_article(env.store, title="C", views=50, open_rate=41.0)
    make_article(env.store, title="D", status="draft", views=999)
    make_article(env.store, title="E", status="archived")
    call_tool("add_note", {"type": "idea", "content": "x"})

    stats = call_tool("get_stats", {})
    assert stats["total_articles"] == 5
    assert stats["published"] == 3
    assert stats["draft"] == 1
    assert stats["archived"] == 1
    assert stats["total_views"] == 450
    # (40.0 + 44.7 + 41.0) / 3 = 41.9
    assert stats["avg_open_rate"] == 41.9
    assert [a["title"] for a in stats["top_5_by_views"]] == ["B", "A", "C"]
    assert stats["active_notes"] == 1
    assert stats["active_sources"] == 0
    assert stats["top_tools"] == [{"tool_name": "add_note", "calls": 1}, {"tool_name": "get_stats", "calls": 1}]


def test_get_stats_counts_tool_usage(env, call_tool):
    for _ in range(3):
        call_tool("list_tags", {})
    stats = call_tool("get_stats", {})
    assert stats["top_tools"][0] == {"tool_name": "list_tags", "calls": 3}


def test_get_stats_empty_database(call_tool):
    stats = call_tool("get_stats", {})
    assert stats["total_articles"] == 0
    assert stats["avg_open_rate"] == 0.0
    assert stats["top_5_by_views"] == []
