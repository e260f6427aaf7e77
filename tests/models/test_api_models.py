"""Typed decoding of upstream account payloads."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from f2pool_exporter.models.api_models import AccountSnapshot, Resource, WorkerRecord
from f2pool_exporter.utils.exceptions import MalformedResourceError


def test_worker_from_positional_array():
    worker = WorkerRecord.model_validate(["w1", 10.0, 5.0, 0.0, 100.0, 1.0, "2024-01-01T00:00:00Z"])

    assert worker.name == "w1"
    assert worker.hashrate == 10.0
    assert worker.hashes_last_hour == 5.0
    assert worker.stale_hashes_rejected_last_hour == 0.0
    assert worker.hashes_last_day == 100.0
    assert worker.stale_hashes_rejected_last_day == 1.0
    assert worker.last_share_time == "2024-01-01T00:00:00Z"


def test_worker_ignores_trailing_entries():
    worker = WorkerRecord.model_validate(["w1", 1, 2, 3, 4, 5, "2024-01-01T00:00:00Z", 0, "extra"])
    assert worker.stale_hashes_rejected_last_day == 5.0


def test_short_worker_array_is_rejected():
    with pytest.raises(ValidationError, match="expected at least 7"):
        WorkerRecord.model_validate(["w1", 10.0, 5.0])


def test_worker_with_non_numeric_hashrate_is_rejected():
    with pytest.raises(ValidationError):
        WorkerRecord.model_validate(["w1", "fast", 5.0, 0.0, 100.0, 1.0, None])


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-01T00:00:00Z", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-01T02:00:00+02:00", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-01T00:00:00.500000Z", datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)),
        ("2024-01-01T00:00:00.5Z", datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)),
    ],
)
def test_last_share_at(raw, expected):
    worker = WorkerRecord.model_validate(["w1", 1, 1, 0, 1, 0, raw])
    assert worker.last_share_at() == expected


@pytest.mark.parametrize("raw", [None, "", "yesterday", "2024-01-01T00:00:00"])
def test_last_share_at_rejects_unusable_values(raw):
    worker = WorkerRecord.model_validate(["w1", 1, 1, 0, 1, 0, raw])
    with pytest.raises(ValueError):
        worker.last_share_at()


def test_account_snapshot(account_payload):
    snapshot = AccountSnapshot.model_validate(account_payload)

    assert snapshot.balance == 0.0123
    assert snapshot.value_last_day == 0.0021
    assert len(snapshot.workers) == 2
    assert snapshot.workers[1].name == "w2"


def test_account_snapshot_missing_field(account_payload):
    del account_payload["paid"]
    with pytest.raises(ValidationError, match="paid"):
        AccountSnapshot.model_validate(account_payload)


def test_account_snapshot_workers_default_empty(account_payload):
    del account_payload["workers"]
    assert AccountSnapshot.model_validate(account_payload).workers == []


def test_resource_parse():
    resource = Resource.parse("bitcoin/alice")
    assert (resource.currency, resource.account, resource.path) == ("bitcoin", "alice", "bitcoin/alice")


def test_resource_parse_ignores_extra_segments():
    resource = Resource.parse("bitcoin/alice/extra")
    assert (resource.currency, resource.account) == ("bitcoin", "alice")
    assert resource.path == "bitcoin/alice/extra"


def test_resource_without_separator():
    with pytest.raises(MalformedResourceError) as exc_info:
        Resource.parse("bitcoin")
    assert exc_info.value.resource == "bitcoin"


@pytest.mark.parametrize("field, value", [("balance", "12.5"), ("hashrate", True), ("paid", "0")])
def test_account_snapshot_rejects_non_numeric_values(account_payload, field, value):
    account_payload[field] = value
    with pytest.raises(ValidationError, match=field):
        AccountSnapshot.model_validate(account_payload)


def test_account_snapshot_accepts_integer_values(account_payload):
    account_payload["balance"] = 3
    assert AccountSnapshot.model_validate(account_payload).balance == 3.0


@pytest.mark.parametrize(
    "entry",
    [
        ["w1", "10.0", 5.0, 0.0, 100.0, 1.0, None],
        ["w1", 10.0, 5.0, False, 100.0, 1.0, None],
        [7, 10.0, 5.0, 0.0, 100.0, 1.0, None],
    ],
)
def test_worker_rejects_mistyped_entries(entry):
    with pytest.raises(ValidationError):
        WorkerRecord.model_validate(entry)
