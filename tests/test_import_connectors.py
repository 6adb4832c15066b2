import json
from pathlib import Path

import pytest
import requests

from conftest import FakeResponse, FakeSession, make_article
from inkwell.connectors import (
    BeehiivConnector,
    ConnectorConfig,
    GhostConnector,
    KitConnector,
    SubstackConnector,
    get_connector,
)
from inkwell.connectors.substack import extract_text_from_html
from inkwell.mcp.dispatcher import Dispatcher
from inkwell.mcp.registry import Env

LONG_PARAGRAPH = "This week we look at how semiconductor supply shapes the AI race in detail."

POSTS_CSV = (
    "post_id,post_date,is_published,email_sent_at,type,title,subtitle\n"
    "101.first-issue,2026-01-01T08:00:00Z,true,2026-01-01T09:00:00Z,newsletter,First issue,Kickoff\n"
    "102.pod,2026-01-08T08:00:00Z,true,,podcast,Podcast one,\n"
    "103.draft,2026-01-15T08:00:00Z,false,,newsletter,Unpublished,\n"
    "104.thread,2026-01-20T08:00:00Z,true,,thread,A thread,\n"
)


@pytest.fixture
def substack_export(tmp_path: Path) -> Path:
    root = tmp_path / "substack"
    posts = root / "posts"
    posts.mkdir(parents=True)
    (root / "posts.csv").write_text(POSTS_CSV, encoding="utf-8")
    (posts / "101.first-issue.html").write_text(
        f"<style>p {{color: red}}</style><h1>Title</h1><p>{LONG_PARAGRAPH}</p><p>short</p>", encoding="utf-8"
    )
    (posts / "101.delivers.csv").write_text("email\na@x\nb@x\nc@x\nd@x\n", encoding="utf-8")
    (posts / "101.opens.csv").write_text("email\na@x\nb@x\nc@x\n", encoding="utf-8")
    (posts / "102.delivers.csv").write_text("email\na@x\n", encoding="utf-8")
    return root


def _ghost_export(tmp_path: Path) -> Path:
    path = tmp_path / "ghost.json"
    path.write_text(json.dumps({"db": [{"data": {"posts": [
        {"id": "g1", "uuid": "u-1", "title": "Ghost post", "status": "published", "html": "<p>growth</p>",
         "published_at": "2026-02-01T00:00:00.000Z", "url": "https://blog/ghost-post/"},
        {"id": "g2", "title": "Ghost draft", "status": "draft"},
    ]}}]}), encoding="utf-8")
    return path


def _owner_call(env, owner, registry, name, arguments):
    response = Dispatcher(registry, env, owner).handle({
        "jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": name, "arguments": arguments},
    })
    if "error" in response:
        return response
    return json.loads(response["result"]["content"][0]["text"])


class TestSubstack:
    def test_validate(self, substack_export, tmp_path):
        connector = SubstackConnector()
        assert connector.validate(ConnectorConfig()).valid is False
        assert connector.validate(ConnectorConfig(export_path=str(tmp_path))).valid is False
        assert connector.validate(ConnectorConfig(export_path=str(substack_export))).valid is True

    def test_import_published_newsletters_and_podcasts(self, substack_export):
        result = SubstackConnector().import_articles(ConnectorConfig(export_path=str(substack_export)))
        assert result.messages[0] == "Found 4 total posts, 2 published"
        assert result.stats.total == 2
        assert result.stats.imported == 2

        first, pod = result.articles
        assert first.title == "First issue"
        assert first.type == "edition"
        assert first.published_at == "2026-01-01T09:00:00Z"
        assert first.open_rate == 75.0
        assert first.editorial_angle == LONG_PARAGRAPH
        assert first.external_id == "101"

        assert pod.type == "special"
        assert pod.published_at == "2026-01-08T08:00:00Z"
        assert pod.open_rate == 0.0
        assert pod.editorial_angle is None

    def test_extract_text_from_html_truncates(self):
        markup = "<p>" + "x" * 60 + "</p>"
        assert extract_text_from_html(markup, max_length=10) == "x" * 10
        assert extract_text_from_html("<p>tiny</p>") is None


class TestGhost:
    def test_export_import(self, tmp_path):
        connector = GhostConnector()
        config = ConnectorConfig(export_path=str(_ghost_export(tmp_path)))
        assert connector.validate(config).valid
        result = connector.import_articles(config)
        assert [a.title for a in result.articles] == ["Ghost post"]
        assert result.articles[0].external_id == "u-1"
        assert result.stats.skipped == 1

    def test_validate_requires_credentials_or_file(self, tmp_path):
        connector = GhostConnector()
        assert not connector.validate(ConnectorConfig()).valid
        assert not connector.validate(ConnectorConfig(export_path=str(tmp_path / "missing.json"))).valid

    def test_content_api_pagination(self):
        url = "https://blog.example/ghost/api/content/posts/"

        def posts(params):
            page = params.get("page", 1)
            return FakeResponse({
                "posts": [{"id": f"p{page}", "title": f"Post {page}", "html": "<p>x</p>"}],
                "meta": {"pagination": {"pages": 2}},
            })

        session = FakeSession({url: posts})
        connector = GhostConnector(session=session)
        config = ConnectorConfig(api_url="https://blog.example/", api_key="key")

        assert connector.validate(config).valid
        result = connector.import_articles(config)
        assert [a.title for a in result.articles] == ["Post 1", "Post 2"]
        assert session.calls[-1]["params"]["filter"] == "status:published"
        assert session.calls[-1]["params"]["key"] == "key"


class TestBeehiiv:
    URL = "https://api.beehiiv.com/v2/publications/pub_1/posts"

    def _session(self):
        def posts(params):
            page = params.get("page", 1)
            return FakeResponse({
                "data": [{
                    "id": f"b{page}",
                    "title": f"Edition {page}",
                    "publish_date": 1767225600,
                    "web_url": f"https://news.example/p/{page}",
                    "stats": {"email_recipients": 1000, "email_open_rate": 0.4567, "email_click_rate": 0},
                }],
                "total_pages": 2,
            })
        return FakeSession({self.URL: posts})

    def test_validate(self):
        connector = BeehiivConnector(session=self._session())
        assert not connector.validate(ConnectorConfig(api_key="k")).valid
        assert not connector.validate(ConnectorConfig(publication_id="pub_1")).valid
        assert connector.validate(ConnectorConfig(api_key="k", publication_id="pub_1")).valid

    def test_import_converts_rates_and_dates(self):
        session = self._session()
        result = BeehiivConnector(session=session).import_articles(
            ConnectorConfig(api_key="k", publication_id="pub_1")
        )
        assert [a.title for a in result.articles] == ["Edition 1", "Edition 2"]
        first = result.articles[0]
        assert first.published_at == "2026-01-01T00:00:00Z"
        assert first.views == 1000
        assert first.open_rate == 45.7
        assert first.click_rate is None
        assert first.url == "https://news.example/p/1"
        assert session.calls[0]["headers"]["Authorization"] == "Bearer k"
        assert session.calls[0]["params"]["expand"] == "stats"

    def test_probe_reports_http_errors(self):
        session = FakeSession({self.URL: FakeResponse(status_code=401, text="bad key")})
        result = BeehiivConnector(session=session).validate(ConnectorConfig(api_key="k", publication_id="pub_1"))
        assert not result.valid
        assert "401" in result.message


class TestKit:
    LIST_URL = "https://api.kit.com/v3/broadcasts"

    def test_import_with_best_effort_stats(self):
        def stats_ok(params):
            return FakeResponse({"stats": {"recipients": 500, "open_rate": 0.5, "click_rate": 0.123}})

        def stats_down(params):
            raise requests.ConnectionError("timeout")

        session = FakeSession({
            self.LIST_URL: FakeResponse({"broadcasts": [
                {"id": 1, "subject": "Hello", "published_at": "2026-01-01T00:00:00Z"},
                {"id": 2, "subject": "Again", "send_at": "2026-01-08T00:00:00Z"},
            ]}),
            f"{self.LIST_URL}/1/stats": stats_ok,
            f"{self.LIST_URL}/2/stats": stats_down,
        })
        connector = KitConnector(session=session)
        config = ConnectorConfig(api_key="secret")

        assert connector.validate(config).valid
        result = connector.import_articles(config)

        hello, again = result.articles
        assert hello.views == 500
        assert hello.open_rate == 50.0
        assert hello.click_rate == 12.3
        assert again.published_at == "2026-01-08T00:00:00Z"
        assert again.open_rate is None
        assert result.stats.errors == 0

    def test_validate_needs_secret(self):
        assert not KitConnector().validate(ConnectorConfig()).valid

    def test_connection_failure_is_invalid(self):
        def down(params):
            raise requests.ConnectionError("refused")

        result = KitConnector(session=FakeSession({self.LIST_URL: down})).validate(ConnectorConfig(api_key="s"))
        assert not result.valid
        assert result.message.startswith("Connection failed")


def test_get_connector_unknown_platform():
    with pytest.raises(ValueError):
        get_connector("medium")


class TestImportTool:
    def test_dry_run_previews_without_writing(self, env, owner, registry, substack_export):
        result = _owner_call(env, owner, registry, "import_newsletter", {
            "platform": "substack", "export_path": str(substack_export), "dry_run": True,
        })
        assert result["dry_run"] is True
        assert result["imported"] == 2
        assert result["preview"][0] == {"title": "First issue", "published_at": "2026-01-01T09:00:00Z",
                                        "open_rate": 75.0}
        assert env.store.count("articles") == 0

    def test_import_creates_then_updates_by_title(self, env, owner, registry, substack_export):
        make_article(env.store, title="Podcast one", status="draft", views=5)

        result = _owner_call(env, owner, registry, "import_newsletter", {
            "platform": "substack", "export_path": str(substack_export),
        })
        assert result["created"] == 1
        assert result["updated"] == 1
        assert result["skipped"] == 0
        assert result["enrichment"] == {"articles_enriched": 0, "total_tags_linked": 0, "total_experts_linked": 0}

        first = env.store.query_one(table="articles", filters=[{"column": "title", "op": "eq", "value": "First issue"}])
        assert first["open_rate"] == 75.0
        assert first["status"] == "published"

        again = _owner_call(env, owner, registry, "import_newsletter", {
            "platform": "substack", "export_path": str(substack_export),
        })
        assert again["created"] == 0
        assert env.store.count("articles") == 2

    def test_ghost_import_runs_enrichment(self, env, owner, registry, tmp_path):
        result = _owner_call(env, owner, registry, "import_newsletter", {
            "platform": "ghost", "export_path": str(_ghost_export(tmp_path)),
        })
        assert result["created"] == 1
        assert result["enrichment"]["articles_enriched"] == 1
        row = env.store.query_one(table="articles", filters=[{"column": "title", "op": "eq", "value": "Ghost post"}])
        assert row["conclusion_signal"] == "bullish"
        assert row["substack_url"] == "https://blog/ghost-post/"

    def test_enrich_false_skips_enrichment(self, env, owner, registry, tmp_path):
        result = _owner_call(env, owner, registry, "import_newsletter", {
            "platform": "ghost", "export_path": str(_ghost_export(tmp_path)), "enrich": False,
        })
        assert result["enrichment"] is None

    def test_validation_failure_is_400(self, env, owner, registry):
        result = _owner_call(env, owner, registry, "import_newsletter", {"platform": "substack"})
        assert result["error"]["code"] == 400
        assert result["error"]["message"].startswith("Validation failed:")

    def test_unknown_platform_is_400(self, env, owner, registry):
        result = _owner_call(env, owner, registry, "import_newsletter", {"platform": "medium"})
        assert result["error"]["code"] == 400

    def test_network_connector_uses_env_session(self, store, config, owner, registry):
        url = "https://api.beehiiv.com/v2/publications/pub_9/posts"
        session = FakeSession({url: FakeResponse({"data": [{"id": "x", "title": "Remote"}], "total_pages": 1})})
        env = Env(store=store, config=config, http=session)

        result = _owner_call(env, owner, registry, "import_newsletter", {
            "platform": "beehiiv", "api_key": "k", "publication_id": "pub_9",
        })
        assert result["created"] == 1
        assert len(session.calls) == 2

    def test_public_caller_rejected(self, env, public, registry, substack_export):
        result = _owner_call(env, public, registry, "import_newsletter", {
            "platform": "substack", "export_path": str(substack_export),
        })
        assert result["error"]["code"] == 403
