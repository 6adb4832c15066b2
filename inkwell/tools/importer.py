"""
import_newsletter: pull articles from Substack, Beehiiv, Ghost or Kit.

Articles are matched to existing rows by title. A match only receives the
metrics and links the platform reports; everything else is kept.
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from inkwell.connectors import CONNECTORS, ConnectorConfig, ImportedArticle, enrich_article, get_connector
from inkwell.core.auth import require_owner
from inkwell.core.errors import InvalidArgumentsError
from inkwell.core.types import Filter
from inkwell.core.utils import utc_now_iso
from inkwell.mcp.registry import Tool
from inkwell.tools.common import ToolArgs, object_schema, parse_args

logger = logging.getLogger("Inkwell.tools.import")

PREVIEW_SIZE = 5


class ImportNewsletterArgs(ToolArgs):
    platform: Literal["substack", "beehiiv", "ghost", "kit"]
    export_path: Optional[str] = None
    api_key: Optional[str] = None
    api_url: Optional[str] = None
    publication_id: Optional[str] = None
    enrich: bool = True
    dry_run: bool = False


def _metrics_patch(article: ImportedArticle) -> Dict[str, Any]:
    patch: Dict[str, Any] = {}
    if article.open_rate is not None:
        patch["open_rate"] = article.open_rate
    if article.click_rate is not None:
        patch["click_rate"] = article.click_rate
    if article.views is not None:
        patch["views"] = article.views
    if article.editorial_angle:
        patch["editorial_angle"] = article.editorial_angle
    if article.url:
        patch["substack_url"] = article.url
    return patch


def _new_row(article: ImportedArticle) -> Dict[str, Any]:
    return {
        "title": article.title,
        "subtitle": article.subtitle,
        "content": article.content,
        "status": article.status,
        "type": article.type,
        "number": article.number,
        "published_at": article.published_at,
        "views": article.views or 0,
        "open_rate": article.open_rate or 0,
        "click_rate": article.click_rate or 0,
        "substack_url": article.url,
        "editorial_angle": article.editorial_angle,
    }


def import_newsletter(args, ctx, env):
    require_owner(ctx)
    params = parse_args(ImportNewsletterArgs, args)

    connector = get_connector(params.platform, session=env.http)
    config = ConnectorConfig(
        export_path=params.export_path or None,
        api_key=params.api_key or None,
        api_url=params.api_url or None,
        publication_id=params.publication_id or None,
    )

    validation = connector.validate(config)
    if not validation.valid:
        raise InvalidArgumentsError(f"Validation failed: {validation.message}")

    result = connector.import_articles(config)
    logger.info("%s import: %d articles (%d errors)", connector.display_name, len(result.articles), result.stats.errors)

    if params.dry_run:
        return {
            "dry_run": True,
            "platform": params.platform,
            **result.stats.model_dump(),
            "messages": result.messages,
            "preview": [
                {"title": a.title, "published_at": a.published_at, "open_rate": a.open_rate}
                for a in result.articles[:PREVIEW_SIZE]
            ],
        }

    created = updated = skipped = 0
    enriched: List[Any] = []

    for article in result.articles:
        existing = env.store.query_one(
            table="articles",
            select=["id"],
            filters=[Filter(column="title", op="eq", value=article.title)],
        )
        if existing is not None:
            article_id = existing["id"]
            patch = _metrics_patch(article)
            if patch:
                patch["updated_at"] = utc_now_iso()
                env.store.update("articles", [Filter(column="id", op="eq", value=article_id)], patch)
                updated += 1
            else:
                skipped += 1
        else:
            article_id = env.store.insert("articles", _new_row(article))["id"]
            created += 1

        if params.enrich and article.content:
            enriched.append(enrich_article(env.store, article_id, article.content, env.config.tag_patterns))

    enrichment = None
    if params.enrich:
        enrichment = {
            "articles_enriched": len(enriched),
            "total_tags_linked": sum(r.tags for r in enriched),
            "total_experts_linked": sum(r.experts for r in enriched),
        }

    return {
        "platform": params.platform,
        "created": created,
        "updated": updated,
        "skipped": skipped,
        "errors": result.stats.errors,
        "enrichment": enrichment,
        "messages": result.messages,
    }


TOOLS = [
    Tool(
        name="import_newsletter",
        description=(
            "Import articles from an external newsletter platform (Substack, Beehiiv, Ghost, Kit). "
            "Supports export directories/files and API imports. Owner only."
        ),
        input_schema=object_schema({
            "platform": {"type": "string", "enum": list(CONNECTORS), "description": "Newsletter platform"},
            "export_path": {"type": "string", "description": "Path to export directory/file (Substack export, Ghost JSON)"},
            "api_key": {"type": "string", "description": "API key (Beehiiv, Ghost, Kit)"},
            "api_url": {"type": "string", "description": "API base URL (Ghost only, e.g. https://myblog.ghost.io)"},
            "publication_id": {"type": "string", "description": "Publication ID (Beehiiv only)"},
            "enrich": {"type": "boolean", "description": "Auto-tag and link experts after import. Default true.", "default": True},
            "dry_run": {"type": "boolean", "description": "Preview without writing to the database", "default": False},
        }, required=["platform"]),
        handler=import_newsletter,
    ),
]
