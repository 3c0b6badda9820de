"""
Search session state with last-submitted-wins ordering.

Every submit takes a new generation number. A response is only applied while
its generation is still current, and only to the slot of the mode it was
requested for.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .client import SearchClient, SearchMode, UpstreamError
from .models import NormalizedTable
from .normalize import normalize_comparison_table
from .rules import DEFAULT_SUBJECT_COUNT

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Enter a query to start."


@dataclass
class SearchState:
    mode: SearchMode = SearchMode.PLACES
    loading: bool = False
    error: Optional[str] = None
    places: List[Dict[str, Any]] = field(default_factory=list)
    comparison: Optional[Any] = None
    table: Optional[NormalizedTable] = None
    query: str = ""


class SearchSession:
    def __init__(self, client: SearchClient, subject_count: int = DEFAULT_SUBJECT_COUNT):
        self.client = client
        self.subject_count = subject_count
        self.state = SearchState()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def switch_mode(self, mode: SearchMode) -> SearchState:
        """Change tab: clears all results and supersedes any in-flight search."""
        self._generation += 1
        self.state = SearchState(mode=SearchMode(mode))
        return self.state

    def _clear_other_mode(self, mode: SearchMode):
        if mode is SearchMode.PLACES:
            self.state.comparison = None
            self.state.table = None
        else:
            self.state.places = []

    async def submit(
        self,
        query: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> SearchState:
        """
        Run a search in the current mode.

        The same query string is sent upstream and used for comparison
        labels. Returns the state as seen once this call settles, which may
        already reflect a later submission.
        """
        if not query or not query.strip():
            self.state.error = EMPTY_QUERY_MESSAGE
            return self.state

        mode = self.state.mode
        self._generation += 1
        generation = self._generation

        self.state.loading = True
        self.state.error = None
        self.state.query = query
        self._clear_other_mode(mode)

        try:
            try:
                if mode is SearchMode.PLACES:
                    result: Any = await self.client.places(query, lat=lat, lng=lng)
                else:
                    result = await self.client.compare(query)
            except UpstreamError as e:
                if generation == self._generation:
                    self.state.error = str(e)
                else:
                    logger.debug("Discarded failure of superseded search %d: %s", generation, e)
                return self.state

            if generation != self._generation or self.state.mode is not mode:
                logger.debug("Discarded response of superseded search %d", generation)
                return self.state

            if mode is SearchMode.PLACES:
                self.state.places = result
            else:
                self.state.comparison = result
                self.state.table = normalize_comparison_table(result, query, subject_count=self.subject_count)
            return self.state
        finally:
            if generation == self._generation:
                self.state.loading = False
