"""
Ghost importer: a JSON export file, or the read-only Content API.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from inkwell.connectors.base import (
    ConnectorConfig,
    ImportedArticle,
    ImportResult,
    ImportStats,
    NewsletterConnector,
    ValidationResult,
)

logger = logging.getLogger("Inkwell.connectors.ghost")

PAGE_SIZE = 100


def _export_posts(data: Any) -> List[Dict[str, Any]]:
    # Ghost exports wrap posts as {"db": [{"data": {"posts": [...]}}]}
    if isinstance(data, dict):
        db = data.get("db")
        if isinstance(db, list) and db and isinstance(db[0], dict):
            posts = (db[0].get("data") or {}).get("posts")
            if isinstance(posts, list):
                return posts
        posts = data.get("posts")
        if isinstance(posts, list):
            return posts
    return []


def _to_article(post: Dict[str, Any]) -> ImportedArticle:
    return ImportedArticle(
        title=post["title"],
        subtitle=post.get("custom_excerpt") or None,
        content=post.get("html") or None,
        status="published",
        type="edition",
        published_at=post.get("published_at") or None,
        url=post.get("url") or None,
        external_id=post.get("uuid") or post.get("id"),
    )


class GhostConnector(NewsletterConnector):
    platform = "ghost"
    display_name = "Ghost"

    def _posts_url(self, api_url: str) -> str:
        return f"{api_url.rstrip('/')}/ghost/api/content/posts/"

    def validate(self, config: ConnectorConfig) -> ValidationResult:
        if config.export_path:
            if not Path(config.export_path).is_file():
                return ValidationResult(valid=False, message=f"Export file not found: {config.export_path}")
            return ValidationResult(valid=True, message="Ghost JSON export file found")

        if not config.api_url or not config.api_key:
            return ValidationResult(
                valid=False,
                message="Provide api_url + api_key (Content API) or export_path (JSON export)",
            )
        return self._probe(
            self._posts_url(config.api_url),
            "Ghost Content API connection successful",
            params={"key": config.api_key, "limit": 1},
        )

    def import_articles(self, config: ConnectorConfig) -> ImportResult:
        if config.export_path:
            return self.import_from_export(Path(config.export_path))
        return self.import_from_api(config.api_url, config.api_key)

    def import_from_export(self, path: Path) -> ImportResult:
        with open(path, "r", encoding="utf-8") as f:
            posts = _export_posts(json.load(f))

        messages = [f"Found {len(posts)} posts in Ghost export"]
        articles = []
        errors = 0
        for post in posts:
            if post.get("status") != "published":
                continue
            try:
                articles.append(_to_article(post))
            except (KeyError, ValueError) as e:
                messages.append(f"Error: {e}")
                errors += 1

        return ImportResult(
            articles=articles,
            stats=ImportStats(
                total=len(posts),
                imported=len(articles),
                skipped=len(posts) - len(articles) - errors,
                errors=errors,
            ),
            messages=messages,
        )

    def import_from_api(self, api_url: str, api_key: str) -> ImportResult:
        messages: List[str] = []
        articles: List[ImportedArticle] = []
        errors = 0
        fetched = 0
        page = 1

        while True:
            response = self._get(
                self._posts_url(api_url),
                params={
                    "key": api_key,
                    "include": "tags,authors",
                    "limit": PAGE_SIZE,
                    "page": page,
                    "filter": "status:published",
                },
            )
            if not response.ok:
                messages.append(f"API error on page {page}: {response.status_code}")
                errors += 1
                break

            data = response.json()
            posts = data.get("posts") or []
            fetched += len(posts)
            for post in posts:
                try:
                    articles.append(_to_article(post))
                except (KeyError, ValueError) as e:
                    messages.append(f"Error: {e}")
                    errors += 1

            pages = ((data.get("meta") or {}).get("pagination") or {}).get("pages") or 1
            if page >= pages:
                break
            page += 1

        messages.append(f"Fetched {fetched} posts from Ghost Content API")
        logger.info("Fetched %d Ghost posts", fetched)
        return ImportResult(
            articles=articles,
            stats=ImportStats(total=fetched, imported=len(articles), skipped=0, errors=errors),
            messages=messages,
        )
