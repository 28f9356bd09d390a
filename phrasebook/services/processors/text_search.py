"""
Text Search Service

Full-text matching over phrase text.

PostgreSQL:
-----------
Uses to_tsvector/to_tsquery with the 'english' configuration, matching the
GIN expression index created by the initial migration:

    CREATE INDEX ix_phrases_text_search_gin
    ON phrases USING gin (to_tsvector('english'::regconfig, text))

Queries AND their terms together with prefix matching, so "wis begin"
becomes ``wis:* & begin:*`` and results are ranked with ts_rank.

Other dialects:
---------------
SQLite (used by the test suite) has no tsvector. There every term must
appear as a case-insensitive substring, which keeps the same "all terms
must match" behaviour without stemming or ranking.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import and_, func, literal_column
from sqlalchemy.sql.elements import ColumnElement

logger = logging.getLogger(__name__)

_LANGUAGE_NAME = re.compile(r"^[a-z_]+$")


@dataclass
class TextMatch:
    """A WHERE clause for the search, plus a relevance expression if the dialect ranks."""

    clause: ColumnElement
    rank: Optional[ColumnElement] = None


class TextSearchService:
    """
    Builds full-text search clauses for a text column.

    Usage:
    ------
    search = TextSearchService()
    match = search.build_match(Phrase.text, "wisdom", dialect_name="postgresql")
    stmt = select(Phrase).where(match.clause).order_by(match.rank.desc())
    """

    def __init__(self, language: str = "english"):
        """
        Args:
            language: PostgreSQL text search configuration (english, simple, ...)
        """
        if not _LANGUAGE_NAME.match(language):
            raise ValueError(f"Invalid text search configuration: {language!r}")
        self.language = language

    def extract_terms(self, query_text: Optional[str]) -> List[str]:
        """
        Split a user query into lowercase search terms.

        Punctuation is treated as a separator, so "don't" yields
        ["don", "t"] and "!!!" yields [].
        """
        if not query_text:
            return []
        cleaned = re.sub(r"[^\w\s]", " ", query_text)
        return [word.lower() for word in cleaned.split()]

    def prepare_search_query(
        self,
        query_text: str,
        use_prefix_matching: bool = True
    ) -> str:
        """
        Prepare user query for PostgreSQL to_tsquery.

        Examples:
            "Wisdom begins" → "wisdom:* & begins:*" (with prefix)
            "Wisdom begins" → "wisdom & begins" (without prefix)
            "!!!"           → ""
        """
        terms = self.extract_terms(query_text)
        if use_prefix_matching:
            terms = [f"{term}:*" for term in terms]
        return " & ".join(terms)

    def _regconfig(self) -> ColumnElement:
        return literal_column(f"'{self.language}'::regconfig")

    def build_match(
        self,
        column: ColumnElement,
        query_text: str,
        dialect_name: str,
    ) -> Optional[TextMatch]:
        """
        Build the search clause for ``column``.

        Args:
            column: Text column to search
            query_text: Raw user query
            dialect_name: Bound dialect ("postgresql", "sqlite", ...)

        Returns:
            TextMatch, or None when the query has no searchable terms
        """
        terms = self.extract_terms(query_text)
        if not terms:
            return None

        if dialect_name == "postgresql":
            document = func.to_tsvector(self._regconfig(), column)
            tsquery = func.to_tsquery(self._regconfig(), self.prepare_search_query(query_text))
            return TextMatch(
                clause=document.bool_op("@@")(tsquery),
                rank=func.ts_rank(document, tsquery),
            )

        logger.debug(f"Using substring search fallback for dialect {dialect_name}")
        return TextMatch(
            clause=and_(*[column.icontains(term, autoescape=True) for term in terms]),
        )
