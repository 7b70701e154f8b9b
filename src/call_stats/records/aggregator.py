from collections.abc import Iterable

from call_stats.records.record import CallRecord, EndpointCount


def count_by_endpoint(records: Iterable[CallRecord]) -> list[EndpointCount]:
    """Group records by endpoint, in order of first appearance."""
    groups: dict[str, int] = {}

    for record in records:
        groups[record.endpoint] = groups.get(record.endpoint, 0) + 1

    return [EndpointCount(endpoint=endpoint, count=count) for endpoint, count in groups.items()]


def latest_record(records: Iterable[CallRecord]) -> CallRecord | None:
    """Return the record with the greatest timestamp; ties go to the greatest record_id."""
    latest: CallRecord | None = None

    for record in records:
        if latest is None or (record.recorded_at, record.record_id) > (latest.recorded_at, latest.record_id):
            latest = record

    return latest


def most_called(counts: Iterable[EndpointCount]) -> EndpointCount | None:
    """Return the highest count; ties go to the lexicographically smallest endpoint."""
    best: EndpointCount | None = None

    for entry in counts:
        if (
            best is None
            or entry.count > best.count
            or (entry.count == best.count and entry.endpoint < best.endpoint)
        ):
            best = entry

    return best


class Aggregator:
    """Read-only views over every record in the store, recomputed on each call."""

    def __init__(self, store) -> None:
        self.store = store

    def latest(self) -> CallRecord | None:
        return latest_record(self.store.scan())

    def most_called(self) -> EndpointCount | None:
        return most_called(count_by_endpoint(self.store.scan()))

    def endpoint_counts(self) -> list[EndpointCount]:
        return count_by_endpoint(self.store.scan())
