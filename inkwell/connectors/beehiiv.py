"""
Beehiiv importer (REST API v2). Needs an API key and a publication ID.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from inkwell.connectors.base import (
    ConnectorConfig,
    ImportedArticle,
    ImportResult,
    ImportStats,
    NewsletterConnector,
    ValidationResult,
    as_percent,
)

logger = logging.getLogger("Inkwell.connectors.beehiiv")

API_BASE = "https://api.beehiiv.com/v2"
PAGE_SIZE = 100


def _iso_from_unix(ts: Optional[int]) -> Optional[str]:
    if not ts:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).isoformat().replace("+00:00", "Z")


def _to_article(post: Dict[str, Any]) -> ImportedArticle:
    stats = post.get("stats") or {}
    return ImportedArticle(
        title=post["title"],
        subtitle=post.get("subtitle") or None,
        content=post.get("content_html") or None,
        status="published",
        type="edition",
        published_at=_iso_from_unix(post.get("publish_date")),
        views=stats.get("email_recipients"),
        open_rate=as_percent(stats.get("email_open_rate")),
        click_rate=as_percent(stats.get("email_click_rate")),
        url=post.get("web_url") or None,
        external_id=str(post["id"]) if post.get("id") is not None else None,
    )


class BeehiivConnector(NewsletterConnector):
    platform = "beehiiv"
    display_name = "Beehiiv"

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def validate(self, config: ConnectorConfig) -> ValidationResult:
        if not config.api_key:
            return ValidationResult(valid=False, message="api_key is required (Beehiiv API key)")
        if not config.publication_id:
            return ValidationResult(valid=False, message="publication_id is required")
        return self._probe(
            f"{API_BASE}/publications/{config.publication_id}/posts",
            "Beehiiv API connection successful",
            params={"limit": 1},
            headers=self._headers(config.api_key),
        )

    def import_articles(self, config: ConnectorConfig) -> ImportResult:
        messages: List[str] = []
        articles: List[ImportedArticle] = []
        errors = 0
        fetched = 0
        page = 1

        while True:
            response = self._get(
                f"{API_BASE}/publications/{config.publication_id}/posts",
                params={"expand": "stats", "status": "confirmed", "limit": PAGE_SIZE, "page": page},
                headers=self._headers(config.api_key),
            )
            if not response.ok:
                messages.append(f"API error on page {page}: {response.status_code}")
                errors += 1
                break

            data = response.json()
            posts = data.get("data") or []
            fetched += len(posts)
            for post in posts:
                try:
                    articles.append(_to_article(post))
                except (KeyError, ValueError) as e:
                    messages.append(f'Error processing "{post.get("title")}": {e}')
                    errors += 1

            if page >= int(data.get("total_pages") or 1):
                break
            page += 1

        messages.append(f"Fetched {fetched} posts from Beehiiv API")
        logger.info("Fetched %d Beehiiv posts", fetched)
        return ImportResult(
            articles=articles,
            stats=ImportStats(total=fetched, imported=len(articles), skipped=0, errors=errors),
            messages=messages,
        )
