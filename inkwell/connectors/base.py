"""
Newsletter connector contract.

A connector validates its configuration, then pulls articles from an export
on disk or a platform API and returns them as ImportedArticle records. It
never writes to the store; the import tool does that.
"""

import logging
from typing import List, Literal, Optional

import requests
from pydantic import BaseModel, Field

from inkwell.core.utils import round_rate

logger = logging.getLogger("Inkwell.connectors")

DEFAULT_TIMEOUT = 15.0


def as_percent(fraction: Optional[float]) -> Optional[float]:
    """Convert a 0-1 rate to a one-decimal percentage; falsy rates stay unset."""
    if not fraction:
        return None
    return round_rate(float(fraction) * 100)


class ImportedArticle(BaseModel):
    title: str
    subtitle: Optional[str] = None
    content: Optional[str] = None
    status: Literal["draft", "published", "archived"] = "published"
    type: Literal["edition", "analysis", "special"] = "edition"
    number: Optional[int] = None
    published_at: Optional[str] = None
    views: Optional[int] = None
    open_rate: Optional[float] = None
    click_rate: Optional[float] = None
    url: Optional[str] = None
    editorial_angle: Optional[str] = None
    external_id: Optional[str] = None


class ConnectorConfig(BaseModel):
    export_path: Optional[str] = None
    api_key: Optional[str] = None
    api_url: Optional[str] = None
    publication_id: Optional[str] = None


class ImportStats(BaseModel):
    total: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0


class ImportResult(BaseModel):
    articles: List[ImportedArticle] = Field(default_factory=list)
    stats: ImportStats = Field(default_factory=ImportStats)
    messages: List[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    valid: bool
    message: str


class NewsletterConnector:
    platform: str = ""
    display_name: str = ""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT):
        self._session = session
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.setdefault("Accept", "application/json")
        return self._session

    def validate(self, config: ConnectorConfig) -> ValidationResult:
        raise NotImplementedError

    def import_articles(self, config: ConnectorConfig) -> ImportResult:
        raise NotImplementedError

    def _get(self, url: str, **kwargs) -> requests.Response:
        return self.session.get(url, timeout=self.timeout, **kwargs)

    def _probe(self, url: str, ok_message: str, **kwargs) -> ValidationResult:
        """Issue one cheap request to check credentials."""
        try:
            response = self._get(url, **kwargs)
        except requests.RequestException as exc:
            return ValidationResult(valid=False, message=f"Connection failed: {exc}")
        if not response.ok:
            return ValidationResult(valid=False, message=f"API returned {response.status_code}: {response.text}")
        return ValidationResult(valid=True, message=ok_message)
