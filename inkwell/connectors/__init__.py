from typing import Dict, Optional, Type

import requests

from inkwell.connectors.base import (
    ConnectorConfig,
    ImportedArticle,
    ImportResult,
    ImportStats,
    NewsletterConnector,
    ValidationResult,
)
from inkwell.connectors.beehiiv import BeehiivConnector
from inkwell.connectors.enrichment import EnrichmentResult, enrich_article
from inkwell.connectors.ghost import GhostConnector
from inkwell.connectors.kit import KitConnector
from inkwell.connectors.substack import SubstackConnector

CONNECTORS: Dict[str, Type[NewsletterConnector]] = {
    "substack": SubstackConnector,
    "beehiiv": BeehiivConnector,
    "ghost": GhostConnector,
    "kit": KitConnector,
}


def get_connector(platform: str, session: Optional[requests.Session] = None) -> NewsletterConnector:
    try:
        connector_cls = CONNECTORS[platform]
    except KeyError:
        raise ValueError(
            f"Unknown platform: {platform}. Supported: {', '.join(CONNECTORS)}"
        ) from None
    return connector_cls(session=session)


__all__ = [
    "CONNECTORS",
    "BeehiivConnector",
    "ConnectorConfig",
    "EnrichmentResult",
    "GhostConnector",
    "ImportResult",
    "ImportStats",
    "ImportedArticle",
    "KitConnector",
    "NewsletterConnector",
    "SubstackConnector",
    "ValidationResult",
    "enrich_article",
    "get_connector",
]
