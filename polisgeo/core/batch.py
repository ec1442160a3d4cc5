"""Batch resolution with bounded concurrency, pacing, retries and timeouts."""
import asyncio
import dataclasses
import inspect
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from polisgeo.core.config import MAX_BATCH_SIZE
from polisgeo.core.geocoder import LocationResolver
from polisgeo.core.models import (
    BatchOptions,
    BatchResult,
    BatchSummary,
    Coordinates,
    format_coordinates,
)
from polisgeo.utils.logging import log_error, log_structured
from polisgeo.utils.timing import Timer, time_function

UpdateCallback = Callable[[Mapping[str, Any], Dict[str, Any]], Union[None, Awaitable[None]]]


def validate_batch_request(names: Any, max_size: int = MAX_BATCH_SIZE) -> List[str]:
    """
    Check a batch request before any work starts.

    Args:
        names: Location names supplied by the caller
        max_size: Largest accepted batch

    Returns:
        The names as a list

    Raises:
        ValueError: If names is not a list, is empty, is too large or holds
            non-string entries
    """
    if not isinstance(names, (list, tuple)):
        raise ValueError("Request must contain a locations array")
    if len(names) == 0:
        raise ValueError("Locations array cannot be empty")
    if len(names) > max_size:
        raise ValueError(f"Batch size cannot exceed {max_size} locations")
    if any(not isinstance(name, str) for name in names):
        raise ValueError("All locations must be strings")
    return list(names)


def summarize(results: Sequence[BatchResult]) -> BatchSummary:
    """Aggregate success counts of a batch."""
    total = len(results)
    successful = sum(1 for result in results if result.success)
    return BatchSummary(
        total=total,
        successful=successful,
        failed=total - successful,
        success_rate=successful / total if total else 0.0
    )


class BatchResolver:
    """Resolves many names through a LocationResolver in paced chunks."""

    def __init__(self, resolver: LocationResolver, options: Optional[BatchOptions] = None):
        self.resolver = resolver
        self.options = options or BatchOptions()

    async def batch_resolve(
        self,
        names: Iterable[str],
        options: Optional[BatchOptions] = None,
        **overrides
    ) -> List[BatchResult]:
        """
        Resolve a list of names.

        Duplicates are resolved once; the result list has one entry per
        unique name, in first-seen order. Chunks of `concurrency` names run
        concurrently, and `delay_ms` separates consecutive chunks. An attempt
        that times out or raises is retried up to `retries` more times after
        `retry_delay_ms`. A single failure never aborts the batch.

        Args:
            names: Location names (may contain duplicates)
            options: Batch options (defaults to this resolver's options)
            **overrides: Individual BatchOptions fields to override

        Returns:
            One BatchResult per unique name
        """
        options = options or self.options
        if overrides:
            options = dataclasses.replace(options, **overrides)

        names = list(names or [])
        unique_names = list(dict.fromkeys(names))
        if not unique_names:
            return []

        chunk_size = max(1, options.concurrency)
        log_structured(
            "info",
            "Batch resolution started",
            unique=len(unique_names),
            total=len(names),
            concurrency=chunk_size
        )

        results: List[BatchResult] = []
        with Timer("batch_resolve", unique=len(unique_names), concurrency=chunk_size) as timer:
            for start in range(0, len(unique_names), chunk_size):
                chunk = unique_names[start:start + chunk_size]
                chunk_results = await asyncio.gather(
                    *(self._resolve_with_retry(name, options) for name in chunk)
                )
                results.extend(chunk_results)

                if start + chunk_size < len(unique_names):
                    await asyncio.sleep(options.delay_ms / 1000.0)
            timer.add(resolved=sum(1 for result in results if result.success))

        summary = summarize(results)
        log_structured("info", "Batch resolution completed", **summary.to_dict())
        return results

    async def _resolve_with_retry(self, name: str, options: BatchOptions) -> BatchResult:
        result: Optional[Coordinates] = None
        attempts = 0

        while attempts <= options.retries:
            try:
                result = await asyncio.wait_for(
                    self.resolver.resolve(name),
                    timeout=options.timeout_ms / 1000.0
                )
                break
            except Exception as e:  # asyncio.TimeoutError included
                attempts += 1
                log_structured(
                    "warning",
                    "Batch item attempt failed",
                    location=name,
                    attempt=attempts,
                    error=str(e) or type(e).__name__,
                    error_type=type(e).__name__
                )
                if attempts <= options.retries:
                    await asyncio.sleep(options.retry_delay_ms / 1000.0)

        return BatchResult(location=name, result=result, success=result is not None)


@time_function
async def bulk_reprocess_geodata(
    batch_resolver: BatchResolver,
    events: Sequence[Mapping[str, Any]],
    update_callback: UpdateCallback,
    options: Optional[BatchOptions] = None
) -> Dict[str, int]:
    """
    Re-geocode stored events and hand new coordinates to a callback.

    Args:
        batch_resolver: Batch resolver to use
        events: Events with a `location_name` field
        update_callback: Called as `update_callback(event, geodata)` for each
            resolved event, where geodata is `{lat, lng, location_gps}`; may be
            sync or async
        options: Batch options

    Returns:
        Dict with total, updated and failed counts
    """
    if not events:
        return {"total": 0, "updated": 0, "failed": 0}

    locations = [event.get("location_name") for event in events if event.get("location_name")]
    results = await batch_resolver.batch_resolve(locations, options)
    resolved = {result.location: result.result for result in results if result.success}

    updated = 0
    failed = 0
    for event in events:
        coordinates = resolved.get(event.get("location_name") or "")
        if coordinates is None:
            failed += 1
            continue

        geodata = {
            "lat": coordinates.lat,
            "lng": coordinates.lon,
            "location_gps": format_coordinates(coordinates.lat, coordinates.lon),
        }
        try:
            outcome = update_callback(event, geodata)
            if inspect.isawaitable(outcome):
                await outcome
            updated += 1
        except Exception as e:
            log_error(e, {"operation": "bulk_reprocess_geodata", "event_id": event.get("id")})
            failed += 1

    log_structured("info", "Bulk reprocess completed", total=len(events), updated=updated, failed=failed)
    return {"total": len(events), "updated": updated, "failed": failed}
