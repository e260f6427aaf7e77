from __future__ import annotations

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from f2pool_exporter.api_client import PoolAPIClient
from f2pool_exporter.models.api_models import AccountSnapshot

# 2024-01-01T00:00:00Z
W1_LAST_SHARE_EPOCH = 1704067200.0

ACCOUNT_PAYLOAD = {
    "balance": 0.0123,
    "paid": 1.5,
    "value": 1.5123,
    "value_last_day": 0.0021,
    "stale_hashes_rejected_last_day": 3.0,
    "stale_hashes_rejected_last_hour": 0.0,
    "hashes_last_day": 300.0,
    "hashes_last_hour": 11.0,
    "hashrate": 30.0,
    "workers": [
        ["w1", 10.0, 5.0, 0.0, 100.0, 1.0, "2024-01-01T00:00:00Z"],
        ["w2", 20.0, 6.0, 1.0, 200.0, 2.0, "not-a-timestamp"],
    ],
    "fixed_value": 0.0,
    "pending": 0.0,
}


@pytest.fixture
def account_payload() -> dict:
    return copy.deepcopy(ACCOUNT_PAYLOAD)


@pytest.fixture
def account_snapshot(account_payload) -> AccountSnapshot:
    return AccountSnapshot.model_validate(account_payload)


@pytest.fixture
def stub_client(account_snapshot):
    """PoolAPIClient double that answers every resource with the same snapshot."""
    client = MagicMock(spec=PoolAPIClient)
    client.fetch_account = AsyncMock(return_value=account_snapshot)
    client.close = AsyncMock()
    return client


def sample_map(families) -> dict[tuple[str, frozenset], float]:
    """Flatten metric families into {(sample name, labels): value}."""
    return {
        (sample.name, frozenset(sample.labels.items())): sample.value
        for family in families
        for sample in family.samples
    }


@pytest.fixture
def samples_of():
    return sample_map
