from conftest import make_article


def _seed(store):
    a1 = make_article(store, title="AI regulation in Europe", number=1, published_at="2026-01-10",
                      views=1200, open_rate=41.5, editorial_angle="Policy shift")
    a2 = make_article(store, title="Chip supply outlook", number=2, published_at="2026-02-15",
                      views=900, subtitle="Fabs and AI demand")
    a3 = make_article(store, title="Draft on AI agents", number=3, status="draft")
    a4 = make_article(store, title="Podcast special", number=4, type="special", published_at=None)
    return a1, a2, a3, a4


def test_list_articles_orders_newest_first_with_nulls_last(env, call_tool):
    _seed(env.store)
    result = call_tool("list_articles", {})
    numbers = [a["number"] for a in result["articles"]]
    assert numbers[:2] == [2, 1]
    assert set(numbers[2:]) == {3, 4}
    assert result["count"] == 4
    assert result["offset"] == 0
    assert result["markdown"].endswith("---\n_Test Mark_")


def test_list_articles_filters_and_paginates(env, call_tool):
    _seed(env.store)
    published = call_tool("list_articles", {"status": "published", "limit": 1, "offset": 1})
    assert [a["number"] for a in published["articles"]] == [1]
    special = call_tool("list_articles", {"type": "special"})
    assert [a["number"] for a in special["articles"]] == [4]


def test_list_articles_clamps_limit(env, call_tool):
    for i in range(55):
        make_article(env.store, title=f"A{i}", published_at=f"2026-01-{(i % 28) + 1:02d}")
    assert call_tool("list_articles", {"limit": 500})["count"] == 50


def test_list_articles_rejects_bad_status(call_tool):
    response = call_tool("list_articles", {"status": "lost"})
    assert response["error"]["code"] == 400


def test_get_article_by_number_with_experts(env, call_tool):
    a1, *_ = _seed(env.store)
    expert = env.store.insert("experts", {"name": "Ada Lovelace", "country": "UK"})
    env.store.raw("INSERT INTO article_experts (article_id, expert_id) VALUES (?, ?)", [a1["id"], expert["id"]])

    result = call_tool("get_article", {"number": 1})
    assert result["id"] == a1["id"]
    assert result["experts_count"] == 1
    assert result["experts"][0]["name"] == "Ada Lovelace"
    assert "**#1 AI regulation in Europe**" in result["markdown"]


def test_get_article_requires_id_or_number(call_tool):
    assert call_tool("get_article", {})["error"] == {"code": 400, "message": "Provide either id or number"}


def test_get_article_missing(call_tool):
    assert call_tool("get_article", {"id": "nope"})["error"]["code"] == 404


def test_search_articles_published_only_and_logged(env, call_tool):
    _seed(env.store)
    result = call_tool("search_articles", {"query": "  ai "})
    assert result["query"] == "ai"
    assert {a["number"] for a in result["articles"]} == {1, 2}
    logged = env.store.query(table="search_queries")
    assert logged[0]["query"] == "ai"
    assert logged[0]["result_count"] == 2


def test_search_articles_query_too_short(call_tool):
    assert call_tool("search_articles", {"query": "a"})["error"]["code"] == 400


def test_get_articles_since(env, call_tool):
    _seed(env.store)
    result = call_tool("get_articles_since", {"since_date": "2026-02-01"})
    assert [a["number"] for a in result["articles"]] == [2]
    assert result["since_date"] == "2026-02-01"


def test_get_articles_since_rejects_non_iso(call_tool):
    response = call_tool("get_articles_since", {"since_date": "last week"})
    assert response["error"]["code"] == 400


def test_public_caller_can_read_articles(registry, env, public):
    from inkwell.mcp.dispatcher import Dispatcher

    response = Dispatcher(registry, env, public).handle({
        "jsonrpc": "2.0", "id": 1, "method": "tools/call",
        "params": {"name": "list_articles", "arguments": {}},
    })
    assert "result" in response


def test_experts_listing_and_lookup(env, call_tool):
    a1, *_ = _seed(env.store)
    top = env.store.insert("experts", {"name": "Grace Hopper", "country": "US", "tier": 1, "times_cited": 9})
    env.store.insert("experts", {"name": "Alan Turing", "country": "UK", "tier": 2, "times_cited": 3})
    env.store.raw("INSERT INTO article_experts (article_id, expert_id) VALUES (?, ?)", [a1["id"], top["id"]])

    listed = call_tool("list_experts", {})
    assert [e["name"] for e in listed["experts"]] == ["Grace Hopper", "Alan Turing"]
    assert call_tool("list_experts", {"country": "us"})["count"] == 1
    assert call_tool("list_experts", {"tier": 2})["experts"][0]["name"] == "Alan Turing"

    found = call_tool("get_expert", {"name": "hopper"})
    assert found["expert"]["id"] == top["id"]
    assert found["articles_count"] == 1
    assert found["markdown"].startswith("## Grace Hopper")


def test_get_expert_errors(call_tool):
    assert call_tool("get_expert", {})["error"]["code"] == 400
    assert call_tool("get_expert", {"name": "nobody"})["error"]["code"] == 404


def test_list_tags_by_category(env, call_tool):
    env.store.insert("tags", {"name": "openai", "category": "platform"})
    env.store.insert("tags", {"name": "ai", "category": "tech"})
    env.store.insert("tags", {"name": "agents", "category": "tech"})
    assert [t["name"] for t in call_tool("list_tags", {})["tags"]] == ["agents", "ai", "openai"]
    assert [t["name"] for t in call_tool("list_tags", {"category": "tech"})["tags"]] == ["agents", "ai"]
