"""f2pool metric descriptors.

Descriptors are plain immutable values. A collector builds one catalogue at
construction and turns each descriptor into a fresh GaugeMetricFamily on
every scrape, so nothing is registered globally and no sample outlives the
scrape that produced it.
"""

from __future__ import annotations

from dataclasses import dataclass

from prometheus_client.core import GaugeMetricFamily

NAMESPACE = "f2pool"

# Label value for account-level rows of the per-worker metric families.
ALL_WORKERS = "all"

ACCOUNT_LABELS = ("currency", "account")
WORKER_LABELS = ("currency", "account", "worker")


@dataclass(frozen=True)
class MetricDescriptor:
    name: str
    documentation: str
    labelnames: tuple[str, ...]

    def new_family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.name, self.documentation, labels=list(self.labelnames))


@dataclass(frozen=True)
class MetricCatalogue:
    # --- Account ---
    balance: MetricDescriptor
    paid: MetricDescriptor
    value: MetricDescriptor
    value_last_day: MetricDescriptor

    # --- Hashes, per account ("all") and per worker ---
    stale_hashes_rejected_last_day: MetricDescriptor
    stale_hashes_rejected_last_hour: MetricDescriptor
    hashes_last_day: MetricDescriptor
    hashes_last_hour: MetricDescriptor
    hashrate: MetricDescriptor
    worker_shares_time: MetricDescriptor

    # --- Exporter health ---
    up: MetricDescriptor
    scrape_errors: MetricDescriptor

    @classmethod
    def build(cls, namespace: str = NAMESPACE) -> MetricCatalogue:
        def gauge(name: str, documentation: str, labelnames: tuple[str, ...] = ACCOUNT_LABELS) -> MetricDescriptor:
            full_name = f"{namespace}_{name}" if namespace else name
            return MetricDescriptor(full_name, documentation, labelnames)

        return cls(
            balance=gauge("balance", "Unpaid balance"),
            paid=gauge("paid", "Paid balance"),
            value=gauge("value", "Total revenue"),
            value_last_day=gauge("value_last_day", "Revenue of last 24 hours"),
            stale_hashes_rejected_last_day=gauge(
                "stale_hashes_rejected_last_day", "Stale rejected hashes of last 24 hours", WORKER_LABELS
            ),
            stale_hashes_rejected_last_hour=gauge(
                "stale_hashes_rejected_last_hour", "Stale rejected hashes of last hour", WORKER_LABELS
            ),
            hashes_last_day=gauge("hashes_last_day", "Hashes of last 24 hours", WORKER_LABELS),
            hashes_last_hour=gauge("hashes_last_hour", "Hashes of last hour", WORKER_LABELS),
            hashrate=gauge("hashrate", "Current hashrate", WORKER_LABELS),
            worker_shares_time=gauge(
                "worker_shares_time", "Recently submitted shares time (in seconds)", WORKER_LABELS
            ),
            up=gauge("up", "Whether the last fetch of this resource succeeded (1) or failed (0)"),
            scrape_errors=gauge("scrape_errors", "Number of resources that failed during this scrape", ()),
        )

    def pool_descriptors(self) -> tuple[MetricDescriptor, ...]:
        """Descriptors fed from upstream data, in exposition order."""
        return (
            self.balance,
            self.paid,
            self.value,
            self.value_last_day,
            self.stale_hashes_rejected_last_day,
            self.stale_hashes_rejected_last_hour,
            self.hashes_last_day,
            self.hashes_last_hour,
            self.hashrate,
            self.worker_shares_time,
        )
