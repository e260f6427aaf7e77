from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, StrictFloat, StrictStr, TypeAdapter, model_validator

from f2pool_exporter.utils.exceptions import MalformedResourceError

# Order of the fields inside one entry of the upstream "workers" array.
WORKER_FIELDS = (
    "name",
    "hashrate",
    "hashes_last_hour",
    "stale_hashes_rejected_last_hour",
    "hashes_last_day",
    "stale_hashes_rejected_last_day",
    "last_share_time",
)

_RFC3339 = TypeAdapter(AwareDatetime)


class Resource(BaseModel):
    """A `currency/account` pair as configured on the command line."""

    model_config = ConfigDict(frozen=True)

    currency: str
    account: str
    path: str

    @classmethod
    def parse(cls, identifier: str) -> Resource:
        parts = identifier.split("/")
        if len(parts) < 2:
            raise MalformedResourceError(identifier, "expected {currency}/{account}")
        return cls(currency=parts[0], account=parts[1], path=identifier)


class WorkerRecord(BaseModel):
    name: StrictStr
    hashrate: StrictFloat
    hashes_last_hour: StrictFloat
    stale_hashes_rejected_last_hour: StrictFloat
    hashes_last_day: StrictFloat
    stale_hashes_rejected_last_day: StrictFloat
    last_share_time: StrictStr | None = None

    @model_validator(mode="before")
    @classmethod
    def from_positional(cls, data: Any) -> Any:
        """The API reports each worker as a bare array; name the positions here."""
        if isinstance(data, (list, tuple)):
            if len(data) < len(WORKER_FIELDS):
                raise ValueError(f"worker entry has {len(data)} fields, expected at least {len(WORKER_FIELDS)}")
            return dict(zip(WORKER_FIELDS, data))
        return data

    def last_share_at(self) -> datetime:
        """Parse `last_share_time` as RFC 3339. Raises ValueError when it is missing or invalid."""
        if not self.last_share_time:
            raise ValueError("no last share time reported")
        # ValidationError is a ValueError; naive timestamps are rejected
        return _RFC3339.validate_python(self.last_share_time)


class AccountSnapshot(BaseModel):
    """Account statistics returned by GET /{currency}/{account}."""

    balance: StrictFloat
    paid: StrictFloat
    value: StrictFloat
    value_last_day: StrictFloat
    stale_hashes_rejected_last_day: StrictFloat
    stale_hashes_rejected_last_hour: StrictFloat
    hashes_last_day: StrictFloat
    hashes_last_hour: StrictFloat
    hashrate: StrictFloat
    workers: list[WorkerRecord] = Field(default_factory=list)
