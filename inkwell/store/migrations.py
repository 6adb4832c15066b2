"""
Inkwell schema migrations.

Each migration is applied at most once, in the order declared here, and is
recorded by name in the ``_migrations`` ledger.
"""

from typing import List, NamedTuple


class Migration(NamedTuple):
    name: str
    sql: str


LEDGER_TABLE = """
CREATE TABLE IF NOT EXISTS _migrations (
    name       TEXT PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

CORE = """
-- Articles, experts, tags and their junction tables
CREATE TABLE IF NOT EXISTS articles (
    id                TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    title             TEXT NOT NULL,
    subtitle          TEXT,
    content           TEXT,
    status            TEXT NOT NULL DEFAULT 'draft' CHECK (status IN ('draft', 'published', 'archived')),
    type              TEXT NOT NULL DEFAULT 'edition' CHECK (type IN ('edition', 'analysis', 'special')),
    number            INTEGER UNIQUE,
    published_at      TEXT,
    views             INTEGER NOT NULL DEFAULT 0,
    open_rate         REAL NOT NULL DEFAULT 0,
    click_rate        REAL NOT NULL DEFAULT 0,
    substack_url      TEXT,
    editorial_angle   TEXT,
    tl_dr             TEXT,
    conclusion_signal TEXT CHECK (conclusion_signal IN ('bullish', 'bearish', 'neutral')),
    created_at        TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS experts (
    id          TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    name        TEXT NOT NULL,
    affiliation TEXT,
    expertise   TEXT, -- JSON array stored as text
    country     TEXT,
    tier        INTEGER DEFAULT 2 CHECK (tier BETWEEN 1 AND 3),
    times_cited INTEGER NOT NULL DEFAULT 0,
    notes       TEXT,
    created_at  TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS tags (
    id          TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    name        TEXT NOT NULL UNIQUE,
    category    TEXT CHECK (category IN ('platform', 'business', 'trend', 'tech', 'event')),
    description TEXT,
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS article_experts (
    article_id TEXT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
    expert_id  TEXT NOT NULL REFERENCES experts(id) ON DELETE CASCADE,
    PRIMARY KEY (article_id, expert_id)
);

CREATE TABLE IF NOT EXISTS article_tags (
    article_id TEXT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
    tag_id     TEXT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (article_id, tag_id)
);

CREATE INDEX IF NOT EXISTS idx_articles_status ON articles(status);
CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at);
CREATE INDEX IF NOT EXISTS idx_articles_number ON articles(number);
CREATE INDEX IF NOT EXISTS idx_experts_name ON experts(name);
CREATE INDEX IF NOT EXISTS idx_tags_category ON tags(category);
"""

EDITORIAL = """
-- Notes and sources collected while preparing an article
CREATE TABLE IF NOT EXISTS editorial_notes (
    id             TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    type           TEXT NOT NULL CHECK (type IN ('idea', 'angle', 'quote', 'fact', 'todo', 'outline')),
    content        TEXT NOT NULL,
    target_article TEXT REFERENCES articles(id) ON DELETE SET NULL,
    tags           TEXT, -- JSON array stored as text
    priority       INTEGER NOT NULL DEFAULT 3 CHECK (priority BETWEEN 1 AND 5),
    status         TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'used', 'discarded')),
    created_at     TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at     TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS editorial_sources (
    id              TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    url             TEXT NOT NULL,
    title           TEXT NOT NULL,
    type            TEXT CHECK (type IN ('article', 'report', 'dataset', 'interview', 'video', 'podcast', 'social', 'other')),
    published_date  TEXT,
    target_article  TEXT REFERENCES articles(id) ON DELETE SET NULL,
    description     TEXT,
    key_quotes      TEXT,
    status          TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'inactive')),
    used_in_article TEXT REFERENCES articles(id) ON DELETE SET NULL,
    used_at         TEXT,
    created_at      TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at      TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_notes_status ON editorial_notes(status);
CREATE INDEX IF NOT EXISTS idx_notes_target ON editorial_notes(target_article);
CREATE INDEX IF NOT EXISTS idx_notes_type ON editorial_notes(type);
CREATE INDEX IF NOT EXISTS idx_sources_status ON editorial_sources(status);
CREATE INDEX IF NOT EXISTS idx_sources_target ON editorial_sources(target_article);
CREATE INDEX IF NOT EXISTS idx_sources_url ON editorial_sources(url);
"""

USAGE = """
-- Tool call and search tracking
CREATE TABLE IF NOT EXISTS usage_stats (
    id        TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    tool_name TEXT NOT NULL,
    timestamp TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS search_queries (
    id           TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    tool_name    TEXT NOT NULL,
    query        TEXT NOT NULL,
    result_count INTEGER,
    timestamp    TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_usage_tool ON usage_stats(tool_name);
CREATE INDEX IF NOT EXISTS idx_usage_ts ON usage_stats(timestamp);
CREATE INDEX IF NOT EXISTS idx_search_ts ON search_queries(timestamp);
"""

MIGRATIONS: List[Migration] = [
    Migration("001_core.sql", CORE),
    Migration("002_editorial.sql", EDITORIAL),
    Migration("003_usage.sql", USAGE),
]
