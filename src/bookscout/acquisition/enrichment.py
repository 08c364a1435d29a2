# ABOUTME: Best-effort description enrichment for candidates missing a long-form description.
# ABOUTME: Runs bounded concurrent lookups; any failure leaves the candidate unchanged.

import asyncio
import logging
from dataclasses import replace

from bookscout.acquisition.concurrency import gather_until_cancelled
from bookscout.acquisition.provider import DescriptionSource, ProviderError
from bookscout.acquisition.types import CanonicalRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5


class DescriptionEnricher:
    """Fills in missing descriptions from a provider's per-record endpoint.

    Only records that came from the source's own catalog and carry a
    source_id can be looked up. Lookups never remove a candidate and never
    fail the search.
    """

    def __init__(
        self,
        source: DescriptionSource,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self._source = source
        self._max_concurrency = max(1, max_concurrency)

    def needs_description(self, record: CanonicalRecord) -> bool:
        return (
            not record.description
            and bool(record.source_id)
            and record.provenance is self._source.provenance
        )

    async def enrich(self, record: CanonicalRecord) -> str | None:
        """Fetch a description for one record. Returns None on any failure."""
        if not record.source_id:
            return None
        try:
            return await self._source.fetch_description(record.source_id)
        except ProviderError as exc:
            logger.debug("No description for %s: %s", record.source_id, exc)
            return None

    async def enrich_all(
        self,
        records: list[CanonicalRecord],
        cancel_event: asyncio.Event | None = None,
    ) -> list[CanonicalRecord]:
        """Return records with descriptions filled in where a lookup succeeded.

        Output order matches input order. Lookups run concurrently, at most
        max_concurrency at a time.
        """
        targets = [i for i, record in enumerate(records) if self.needs_description(record)]
        if not targets:
            return list(records)

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(record: CanonicalRecord) -> str | None:
            async with semaphore:
                return await self.enrich(record)

        results = await gather_until_cancelled(
            [bounded(records[i]) for i in targets], cancel_event
        )

        enriched = list(records)
        for position, description in results:
            if description:
                index = targets[position]
                enriched[index] = replace(enriched[index], description=description)

        logger.debug(
            "Enriched %d of %d candidate(s)",
            sum(1 for _, d in results if d),
            len(targets),
        )
        return enriched
