from datetime import datetime, timedelta, timezone

import pytest

from call_stats.records.aggregator import Aggregator, count_by_endpoint, latest_record, most_called
from call_stats.records.record import CallRecord, EndpointCount
from call_stats.records.recorder import Recorder
from call_stats.storage.errors import StorageUnavailable
from call_stats.storage.memory import MemoryRecordStore

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _rec(endpoint: str = "checkout", seconds: int = 0, record_id: str | None = None) -> CallRecord:
    return CallRecord(
        record_id=record_id or f"{endpoint}-{seconds}",
        endpoint=endpoint,
        recorded_at=T0 + timedelta(seconds=seconds),
    )


class TestCountByEndpoint:
    def test_groups_in_first_seen_order(self):
        records = [_rec("checkout", 1), _rec("inventory", 2), _rec("checkout", 3)]
        assert count_by_endpoint(records) == [
            EndpointCount("checkout", 2),
            EndpointCount("inventory", 1),
        ]

    def test_empty_and_arbitrary_endpoint_names(self):
        records = [_rec("", 1), _rec("", 2), _rec("GET /a b?c", 3)]
        counts = {entry.endpoint: entry.count for entry in count_by_endpoint(records)}
        assert counts == {"": 2, "GET /a b?c": 1}

    def test_empty_input(self):
        assert count_by_endpoint([]) == []


class TestLatestRecord:
    def test_picks_maximum_timestamp_regardless_of_order(self):
        records = [_rec("a", 5), _rec("b", 9), _rec("c", 1)]
        assert latest_record(records).endpoint == "b"

    def test_tie_goes_to_greatest_record_id(self):
        first = _rec("a", 5, record_id="0001")
        second = _rec("b", 5, record_id="0002")
        assert latest_record([first, second]) == second
        assert latest_record([second, first]) == second

    def test_empty_input(self):
        assert latest_record([]) is None


class TestMostCalled:
    def test_highest_count_wins(self):
        counts = [EndpointCount("a", 1), EndpointCount("b", 3), EndpointCount("c", 2)]
        assert most_called(counts) == EndpointCount("b", 3)

    def test_tie_goes_to_smallest_endpoint_name(self):
        counts = [EndpointCount("zeta", 2), EndpointCount("alpha", 2), EndpointCount("mid", 1)]
        assert most_called(counts) == EndpointCount("alpha", 2)
        assert most_called(list(reversed(counts))) == EndpointCount("alpha", 2)

    def test_empty_input(self):
        assert most_called([]) is None


class TestAggregator:
    def test_scenario_checkout_inventory(self):
        store = MemoryRecordStore([_rec("checkout", 1), _rec("checkout", 2), _rec("inventory", 3)])
        agg = Aggregator(store)

        assert agg.latest().endpoint == "inventory"
        assert agg.most_called() == EndpointCount("checkout", 2)
        assert {e.endpoint: e.count for e in agg.endpoint_counts()} == {"checkout": 2, "inventory": 1}

    def test_empty_store(self, store):
        agg = Aggregator(store)
        assert agg.latest() is None
        assert agg.most_called() is None
        assert agg.endpoint_counts() == []

    def test_reads_are_idempotent(self):
        store = MemoryRecordStore([_rec("a", 1), _rec("b", 2), _rec("a", 3), _rec("b", 4)])
        agg = Aggregator(store)

        assert agg.latest() == agg.latest()
        assert agg.most_called() == agg.most_called()
        assert agg.endpoint_counts() == agg.endpoint_counts()

    def test_tied_most_called_is_stable(self):
        store = MemoryRecordStore([_rec("b", 1), _rec("a", 2), _rec("b", 3), _rec("a", 4)])
        agg = Aggregator(store)
        results = {agg.most_called() for _ in range(5)}
        assert results == {EndpointCount("a", 2)}

    def test_recomputes_after_new_records(self, store):
        recorder = Recorder(store)
        agg = Aggregator(store)

        recorder.record("a")
        assert agg.most_called() == EndpointCount("a", 1)

        recorder.record("b")
        recorder.record("b")
        assert agg.most_called() == EndpointCount("b", 2)
        assert agg.latest().endpoint == "b"

    def test_counts_match_record_calls(self, store):
        recorder = Recorder(store)
        calls = ["a", "b", "a", "c", "a", "b"]
        for endpoint in calls:
            recorder.record(endpoint)

        counts = {e.endpoint: e.count for e in Aggregator(store).endpoint_counts()}
        assert counts == {e: calls.count(e) for e in set(calls)}

    def test_most_called_matches_max_count(self, store):
        recorder = Recorder(store)
        for endpoint in ["x", "y", "y", "z", "z", "z"]:
            recorder.record(endpoint)

        agg = Aggregator(store)
        assert agg.most_called().count == max(e.count for e in agg.endpoint_counts())

    def test_latest_has_greatest_timestamp(self, store):
        recorder = Recorder(store)
        for endpoint in ["x", "y", "z"]:
            recorder.record(endpoint)

        latest = Aggregator(store).latest()
        assert all(latest.recorded_at >= r.recorded_at for r in store.scan())

    @pytest.mark.parametrize("query", ["latest", "most_called", "endpoint_counts"])
    def test_store_failure_raises(self, query):
        store = MemoryRecordStore([_rec("a", 1)])
        store.fail = True
        with pytest.raises(StorageUnavailable):
            getattr(Aggregator(store), query)()
