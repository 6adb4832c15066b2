"""
Post-import enrichment for a single article.

Tags are matched with the configured regex patterns. Experts are linked when
their last name appears as a whole word. A coarse editorial signal comes from
counting bullish and bearish vocabulary. TL;DR bullets are lifted from list
items, or from blockquotes when the article has few list items.

Link rows are written with ``INSERT OR IGNORE ... RETURNING`` so re-running
enrichment on the same article neither duplicates links nor re-counts
citations.
"""

import json
import logging
import re
from typing import Iterable, List, Sequence

from pydantic import BaseModel

from inkwell.core.config import TagPattern
from inkwell.core.types import Filter
from inkwell.core.utils import utc_now_iso

logger = logging.getLogger("Inkwell.connectors.enrichment")

BULLISH_PATTERNS = [
    re.compile(r"\b(growth|opportunity|expansion|invest\w+|record|milestone|launch\w+|surge|winning|dominant|leader|boom)\b", re.I),
    re.compile(r"\b(croissance|opportunit\w+|hausse|lancement|gagnant)\b", re.I),
]
BEARISH_PATTERNS = [
    re.compile(r"\b(decline|loss\w*|fail\w+|shutdown|withdrawal|bankruptcy|threat\w*|risk\w*|challenge\w*)\b", re.I),
    re.compile(r"\b(déclin|pertes?|chute|fermeture|retrait|menace|risque|défi)\b", re.I),
]
SIGNAL_RATIO = 1.5
MAX_BULLETS = 8
MIN_LAST_NAME = 3

_LI = re.compile(r"<li[^>]*>(.*?)</li>", re.I | re.S)
_BLOCKQUOTE = re.compile(r"<blockquote[^>]*>(.*?)</blockquote>", re.I | re.S)
_TAG = re.compile(r"<[^>]+>")


class EnrichmentResult(BaseModel):
    article_id: str
    tags: int = 0
    experts: int = 0
    signal: str = "neutral"
    tl_dr: int = 0


def _count_hits(patterns: Iterable["re.Pattern[str]"], text: str) -> int:
    return sum(len(p.findall(text)) for p in patterns)


def detect_signal(text: str) -> str:
    bullish = _count_hits(BULLISH_PATTERNS, text)
    bearish = _count_hits(BEARISH_PATTERNS, text)
    if bullish > bearish * SIGNAL_RATIO:
        return "bullish"
    if bearish > bullish * SIGNAL_RATIO:
        return "bearish"
    return "neutral"


def _strip(fragment: str) -> str:
    return _TAG.sub("", fragment).strip()


def extract_bullets(html: str) -> List[str]:
    bullets = []
    for match in _LI.finditer(html):
        text = _strip(match.group(1))
        if 20 < len(text) < 200:
            bullets.append(text)

    if len(bullets) < 3:
        for match in _BLOCKQUOTE.finditer(html):
            text = _strip(match.group(1))
            if 20 < len(text) < 300:
                bullets.append(text)

    return bullets[:MAX_BULLETS]


def _tag_id(store, pattern: TagPattern) -> str:
    existing = store.query_one(table="tags", filters=[Filter(column="name", op="eq", value=pattern.name)])
    if existing is not None:
        return existing["id"]
    return store.insert("tags", {"name": pattern.name, "category": pattern.category})["id"]


def link_tags(store, article_id: str, text: str, tag_patterns: Sequence[TagPattern]) -> int:
    linked = 0
    for tp in tag_patterns:
        try:
            regex = re.compile(tp.pattern, re.I)
        except re.error as e:
            logger.warning("Skipping tag pattern %s: invalid regex (%s)", tp.name, e)
            continue
        if not regex.search(text):
            continue
        rows = store.raw(
            "INSERT OR IGNORE INTO article_tags (article_id, tag_id) VALUES (?, ?) RETURNING tag_id",
            [article_id, _tag_id(store, tp)],
        )
        linked += len(rows)
    return linked


def link_experts(store, article_id: str, text: str) -> int:
    linked = 0
    for expert in store.query(table="experts", select=["id", "name"]):
        parts = (expert.get("name") or "").split()
        last_name = parts[-1] if parts else ""
        if len(last_name) < MIN_LAST_NAME:
            continue
        if not re.search(rf"\b{re.escape(last_name)}\b", text, re.I):
            continue
        rows = store.raw(
            "INSERT OR IGNORE INTO article_experts (article_id, expert_id) VALUES (?, ?) RETURNING expert_id",
            [article_id, expert["id"]],
        )
        if rows:
            store.raw("UPDATE experts SET times_cited = times_cited + 1 WHERE id = ?", [expert["id"]])
            linked += 1
    return linked


def enrich_article(store, article_id: str, content: str, tag_patterns: Sequence[TagPattern]) -> EnrichmentResult:
    """Tag, link experts, set conclusion_signal and tl_dr on one article."""
    text = content.lower()

    with store.transaction():
        tags = link_tags(store, article_id, text, tag_patterns)
        experts = link_experts(store, article_id, text)
        signal = detect_signal(text)
        bullets = extract_bullets(content)

        patch = {"conclusion_signal": signal, "updated_at": utc_now_iso()}
        if bullets:
            patch["tl_dr"] = json.dumps(bullets, ensure_ascii=False)
        store.update("articles", [Filter(column="id", op="eq", value=article_id)], patch)

    logger.debug("Enriched %s: %d tags, %d experts, %s", article_id, tags, experts, signal)
    return EnrichmentResult(article_id=article_id, tags=tags, experts=experts, signal=signal, tl_dr=len(bullets))
