"""
Kit (ConvertKit) importer, API v3. Needs the account's API secret.

Per-broadcast stats are fetched one by one and are best-effort: a failed
stats call leaves the rates unset instead of failing the import.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from inkwell.connectors.base import (
    ConnectorConfig,
    ImportedArticle,
    ImportResult,
    ImportStats,
    NewsletterConnector,
    ValidationResult,
    as_percent,
)

logger = logging.getLogger("Inkwell.connectors.kit")

API_BASE = "https://api.kit.com/v3"
PAGE_SIZE = 50


class KitConnector(NewsletterConnector):
    platform = "kit"
    display_name = "Kit (ConvertKit)"

    def validate(self, config: ConnectorConfig) -> ValidationResult:
        if not config.api_key:
            return ValidationResult(valid=False, message="api_key is required (Kit API secret)")
        return self._probe(
            f"{API_BASE}/broadcasts",
            "Kit API connection successful",
            params={"api_secret": config.api_key, "page": 1, "per_page": 1},
        )

    def fetch_stats(self, broadcast_id: Any, api_secret: str) -> Dict[str, Any]:
        try:
            response = self._get(f"{API_BASE}/broadcasts/{broadcast_id}/stats", params={"api_secret": api_secret})
        except requests.RequestException as e:
            logger.debug("Stats request for broadcast %s failed: %s", broadcast_id, e)
            return {}
        if not response.ok:
            return {}
        try:
            payload = response.json()
        except ValueError:
            return {}
        return (payload or {}).get("stats") or {}

    def _to_article(self, broadcast: Dict[str, Any], api_secret: str) -> ImportedArticle:
        stats = self.fetch_stats(broadcast["id"], api_secret)
        recipients: Optional[int] = stats.get("recipients")
        return ImportedArticle(
            title=broadcast["subject"],
            subtitle=broadcast.get("description") or None,
            content=broadcast.get("content") or None,
            status="published",
            type="edition",
            published_at=broadcast.get("published_at") or broadcast.get("send_at") or None,
            views=recipients,
            open_rate=as_percent(stats.get("open_rate")),
            click_rate=as_percent(stats.get("click_rate")),
            external_id=str(broadcast["id"]),
        )

    def import_articles(self, config: ConnectorConfig) -> ImportResult:
        api_secret = config.api_key
        messages: List[str] = []
        articles: List[ImportedArticle] = []
        errors = 0
        fetched = 0
        page = 1

        while True:
            response = self._get(
                f"{API_BASE}/broadcasts",
                params={"api_secret": api_secret, "page": page, "per_page": PAGE_SIZE},
            )
            if not response.ok:
                messages.append(f"API error on page {page}: {response.status_code}")
                errors += 1
                break

            broadcasts = response.json().get("broadcasts") or []
            fetched += len(broadcasts)
            for broadcast in broadcasts:
                try:
                    articles.append(self._to_article(broadcast, api_secret))
                except (KeyError, ValueError) as e:
                    messages.append(f"Error: {e}")
                    errors += 1

            if len(broadcasts) < PAGE_SIZE:
                break
            page += 1

        messages.append(f"Fetched {fetched} broadcasts from Kit API")
        logger.info("Fetched %d Kit broadcasts", fetched)
        return ImportResult(
            articles=articles,
            stats=ImportStats(total=fetched, imported=len(articles), skipped=0, errors=errors),
            messages=messages,
        )
