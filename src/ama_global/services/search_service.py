"""Search across profiles and questions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ama_global.storage.base import DataStore, Record

logger = logging.getLogger(__name__)


@dataclass
class SearchResults:
    """Matching profiles and questions for one term."""

    users: list[Record] = field(default_factory=list)
    questions: list[Record] = field(default_factory=list)


class SearchService:
    """Thin wrapper that skips blank terms and logs what was searched."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    def search(self, term: str) -> SearchResults:
        if not term.strip():
            return SearchResults()
        found = self.store.search(term)
        results = SearchResults(users=found.get("users", []), questions=found.get("questions", []))
        logger.debug(
            "Search %r matched %d users and %d questions",
            term,
            len(results.users),
            len(results.questions),
        )
        return results
