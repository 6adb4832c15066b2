"""
Substack importer.

Substack has no public API, so this reads an extracted export directory:
``posts.csv`` plus ``posts/<id>.<slug>.html`` and per-post
``<id>.delivers.csv`` / ``<id>.opens.csv`` files.
"""

import csv
import html
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from inkwell.connectors.base import (
    ConnectorConfig,
    ImportedArticle,
    ImportResult,
    ImportStats,
    NewsletterConnector,
    ValidationResult,
)
from inkwell.core.utils import round_rate

logger = logging.getLogger("Inkwell.connectors.substack")

ANGLE_MAX_CHARS = 2000
_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_PARAGRAPHS = re.compile(r"<(p|h[1-6])[^>]*>(.*?)</\1>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]+>")


def _count_rows(path: Path) -> int:
    """Data rows in a CSV file, header excluded."""
    with open(path, newline="", encoding="utf-8") as f:
        rows = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]
    return max(len(rows) - 1, 0)


def extract_text_from_html(markup: str, max_length: int = ANGLE_MAX_CHARS) -> Optional[str]:
    """Join paragraph and heading text longer than 50 chars, truncated to ``max_length``."""
    markup = _SCRIPT_STYLE.sub("", markup)
    paragraphs = []
    for match in _PARAGRAPHS.finditer(markup):
        clean = html.unescape(_TAGS.sub("", match.group(2))).strip()
        if len(clean) > 50:
            paragraphs.append(clean)
    text = " ".join(paragraphs)
    return text[:max_length] if text else None


class SubstackConnector(NewsletterConnector):
    platform = "substack"
    display_name = "Substack"

    def validate(self, config: ConnectorConfig) -> ValidationResult:
        if not config.export_path:
            return ValidationResult(valid=False, message="export_path is required (path to extracted Substack export)")
        if not (Path(config.export_path) / "posts.csv").is_file():
            return ValidationResult(valid=False, message=f"posts.csv not found in {config.export_path}")
        return ValidationResult(valid=True, message="Substack export directory found")

    def import_articles(self, config: ConnectorConfig) -> ImportResult:
        export_dir = Path(config.export_path)
        posts_dir = export_dir / "posts"
        posts = self._read_posts(export_dir / "posts.csv")

        published = [
            p for p in posts
            if p.get("is_published") == "true" and p.get("type") in ("newsletter", "podcast")
        ]
        messages = [f"Found {len(posts)} total posts, {len(published)} published"]
        articles = []
        errors = 0

        for post in published:
            try:
                articles.append(self._to_article(post, posts_dir))
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Failed to import Substack post %s: %s", post.get("title"), e)
                messages.append(f"Error processing {post.get('title')}: {e}")
                errors += 1

        return ImportResult(
            articles=articles,
            stats=ImportStats(total=len(published), imported=len(articles), skipped=0, errors=errors),
            messages=messages,
        )

    def _read_posts(self, path: Path) -> List[Dict[str, str]]:
        with open(path, newline="", encoding="utf-8") as f:
            return [{k.strip(): (v or "").strip() for k, v in row.items() if k} for row in csv.DictReader(f)]

    def _to_article(self, post: Dict[str, str], posts_dir: Path) -> ImportedArticle:
        raw_id = post["post_id"]
        post_id, _, slug = raw_id.partition(".")
        slug = slug or post.get("slug") or ""

        return ImportedArticle(
            title=post["title"],
            subtitle=post.get("subtitle") or None,
            status="published",
            type="edition" if post.get("type") == "newsletter" else "special",
            published_at=post.get("email_sent_at") or post.get("post_date") or None,
            open_rate=self.compute_open_rate(posts_dir, post_id),
            editorial_angle=self.extract_editorial_angle(posts_dir, post_id, slug),
            external_id=post_id,
        )

    def compute_open_rate(self, posts_dir: Path, post_id: str) -> Optional[float]:
        delivers_file = posts_dir / f"{post_id}.delivers.csv"
        opens_file = posts_dir / f"{post_id}.opens.csv"
        if not delivers_file.is_file():
            return None
        delivers = _count_rows(delivers_file)
        if delivers <= 0:
            return None
        if not opens_file.is_file():
            return 0.0
        return round_rate(_count_rows(opens_file) / delivers * 100)

    def extract_editorial_angle(self, posts_dir: Path, post_id: str, slug: str = "") -> Optional[str]:
        if not posts_dir.is_dir():
            return None
        html_path = posts_dir / f"{post_id}.{slug}.html" if slug else None
        if html_path is None or not html_path.is_file():
            html_path = next(iter(sorted(posts_dir.glob(f"{post_id}.*.html"))), None)
        if html_path is None:
            return None
        return extract_text_from_html(html_path.read_text(encoding="utf-8"))
