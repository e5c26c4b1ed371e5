"""Latest-query-wins sequencing for interactive callers.

Overlapping searches (e.g. one per keystroke) can finish out of order.
Each search is tagged with a sequence number when issued, and a response is
only delivered if no newer search has been issued since.
"""

import itertools
import threading
from typing import Optional

from starlette.concurrency import run_in_threadpool

from .core.engine import SearchEngine
from .fetchers.base import CandidateFetcher
from .models.catalog import SearchFilters
from .models.response import SearchResponse


class QuerySequencer:
    """Issues monotonically increasing sequence numbers."""
    
    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()
    
    @property
    def latest(self) -> int:
        return self._latest
    
    def issue(self) -> int:
        """Issue the next sequence number; it becomes the latest."""
        with self._lock:
            self._latest = next(self._counter)
            return self._latest
    
    def is_latest(self, sequence: int) -> bool:
        with self._lock:
            return sequence == self._latest
    
    def accept(self, sequence: int, response: SearchResponse) -> Optional[SearchResponse]:
        """Return the response if it is still current, otherwise None."""
        return response if self.is_latest(sequence) else None


class SequencedSearch:
    """Runs searches off the event loop and drops superseded responses."""
    
    def __init__(
        self,
        engine: SearchEngine,
        fetcher: CandidateFetcher,
        sequencer: Optional[QuerySequencer] = None
    ) -> None:
        self.engine = engine
        self.fetcher = fetcher
        self.sequencer = sequencer or QuerySequencer()
    
    async def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        page: int = 1,
        include_suggestions: bool = True
    ) -> Optional[SearchResponse]:
        """
        Search, returning None if a newer search was issued meanwhile.
        
        Fetch failures are raised whether or not the search is still current.
        """
        sequence = self.sequencer.issue()
        response = await run_in_threadpool(
            self.engine.search,
            query,
            self.fetcher,
            filters=filters,
            page=page,
            include_suggestions=include_suggestions,
            sequence=sequence
        )
        return self.sequencer.accept(sequence, response)
