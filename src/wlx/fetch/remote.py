"""Paginated client for the datasets-server ``/rows`` endpoint.

Pulls a whole dataset split page by page. A failure on the first page
fails the fetch. A failure after some pages keeps what was collected.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Sequence

import httpx
from pydantic import ValidationError

from wlx.core.config import FetchConfig
from wlx.core.errors import PartialAcquisition, RemoteUnavailable
from wlx.core.models import FetchResult, RemoteSourceConfig
from wlx.fetch.schema import RowsPage

logger = logging.getLogger(__name__)

RowParser = Callable[[dict, RemoteSourceConfig], object | None]


class RemoteFetcher:
    """Fetch rows for one remote source at a time.

    Args:
        client: Shared async HTTP client. The fetcher never closes it.
        config: Fetch settings (endpoint, page size, pacing, deadlines).
        sleep: Awaitable used for pacing and rate-limit waits.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: FetchConfig,
        sleep: Callable[[float], object] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._config = config
        self._sleep = sleep

    async def fetch_page(
        self, source: RemoteSourceConfig, offset: int, length: int
    ) -> RowsPage:
        """Fetch and validate one page, retrying on HTTP 429.

        Raises:
            httpx.HTTPError: On network failure or a non-2xx response.
            ValueError: If the body is not a valid rows page.
        """
        params = {
            "dataset": source.dataset,
            "config": source.config,
            "split": source.split,
            "offset": offset,
            "length": length,
        }
        attempts = 0
        while True:
            response = await self._client.get(
                self._config.base_url,
                params=params,
                headers={"User-Agent": self._config.user_agent},
                timeout=self._config.page_timeout,
            )
            if (
                response.status_code == 429
                and attempts < self._config.max_rate_limit_retries
            ):
                attempts += 1
                wait = _retry_after(response, self._config.rate_limit_wait)
                logger.info("Rate limited by %s, waiting %.1fs", source.dataset, wait)
                await self._sleep(wait)
                continue
            response.raise_for_status()
            try:
                return RowsPage.model_validate(response.json())
            except (ValidationError, ValueError) as e:
                raise ValueError(f"Malformed rows page at offset {offset}: {e}") from e

    async def fetch_all(
        self,
        source: RemoteSourceConfig,
        parse_row: RowParser,
        page_size: int | None = None,
        max_entries: int | None = None,
    ) -> FetchResult:
        """Pull every page of a source.

        Stops on a short page, when ``max_entries`` records were collected,
        or when the server-reported total is exhausted.

        Args:
            source: Remote source to read.
            parse_row: Turns a raw ``rows`` item into a record, or None to skip it.
            page_size: Rows per request. Defaults to the configured page size.
            max_entries: Safety cap on collected records.

        Returns:
            FetchResult. ``error`` is set when a page failed; ``records`` keeps
            whatever was collected before the failure.
        """
        page_size = page_size or self._config.page_size
        records: list = []
        total = 0
        skipped = 0
        pages = 0
        offset = 0

        logger.info("Fetching %s (%s/%s)", source.dataset, source.config, source.split)

        while max_entries is None or len(records) < max_entries:
            batch_no = offset // page_size + 1
            try:
                page = await self.fetch_page(source, offset, page_size)
            except (httpx.HTTPError, ValueError) as e:
                if not records:
                    logger.error(
                        "%s",
                        RemoteUnavailable(f"{source.dataset} batch {batch_no} failed: {e}"),
                    )
                    return FetchResult(records=[], total_reported=total, error=str(e), pages=pages)
                logger.warning(
                    "%s",
                    PartialAcquisition(
                        f"{source.dataset} batch {batch_no} failed, keeping "
                        f"{len(records)} entries: {e}"
                    ),
                )
                return FetchResult(
                    records=records,
                    total_reported=total,
                    error=str(e),
                    skipped=skipped,
                    pages=pages,
                )

            pages += 1
            if pages == 1 and page.num_rows_total:
                total = page.num_rows_total
                logger.info("%s reports %d total rows", source.dataset, total)

            for item in page.rows:
                record = parse_row(item, source)
                if record is None:
                    skipped += 1
                    continue
                records.append(record)

            logger.debug(
                "Batch %d: %d rows (total collected %d)", batch_no, len(page.rows), len(records)
            )

            offset += page_size
            if len(page.rows) < page_size or (total and offset >= total):
                break
            if max_entries is not None and len(records) >= max_entries:
                break
            await self._sleep(self._config.pacing_delay)

        if max_entries is not None and len(records) > max_entries:
            records = records[:max_entries]
        if skipped:
            logger.debug("Skipped %d malformed rows from %s", skipped, source.dataset)

        logger.info("Fetched %d entries from %s (%d reported)", len(records), source.dataset, total)
        return FetchResult(records=records, total_reported=total, skipped=skipped, pages=pages)

    async def fetch_many(
        self,
        sources: Sequence[RemoteSourceConfig],
        parse_row: RowParser,
        max_entries: int | None = None,
    ) -> FetchResult:
        """Fetch several sources in priority order and concatenate their records.

        The merged result is ok if any source produced records.
        """
        merged = FetchResult(records=[])
        errors: list[str] = []
        for source in sources:
            result = await self.fetch_all(source, parse_row, max_entries=max_entries)
            merged.records.extend(result.records)
            merged.total_reported += result.total_reported
            merged.skipped += result.skipped
            merged.pages += result.pages
            if result.error:
                errors.append(f"{source.id}: {result.error}")
        if not sources:
            errors.append("no active sources")
        if errors:
            merged.error = "; ".join(errors)
        return merged

    async def preview(self, source: RemoteSourceConfig, length: int = 100) -> RowsPage:
        """Fetch the first page of a source without parsing rows."""
        return await self.fetch_page(source, 0, length)


def _retry_after(response: httpx.Response, default: float) -> float:
    value = response.headers.get("Retry-After")
    if value is None:
        return default
    try:
        return max(float(value), 0.0)
    except ValueError:
        return default
