"""Scrape-time collection of f2pool account metrics."""

from __future__ import annotations

import time
from enum import Enum
from typing import Iterator, Sequence

from loguru import logger
from prometheus_client.core import GaugeMetricFamily, Metric

from f2pool_exporter.api_client import PoolAPIClient
from f2pool_exporter.models.api_models import AccountSnapshot, Resource
from f2pool_exporter.telemetry.metric_registry import ALL_WORKERS, MetricCatalogue, MetricDescriptor
from f2pool_exporter.utils.asyncio_utils import gather_settled
from f2pool_exporter.utils.exceptions import CollectionError


class ErrorPolicy(str, Enum):
    # abort the scrape and stop the exporter on the first failing resource
    EXIT = "exit"
    # drop the failing resource from this scrape and report it via f2pool_up
    SKIP = "skip"


class CollectedMetrics:
    """The families of one scrape, shaped like a registry for `generate_latest`."""

    def __init__(self, families: Sequence[Metric]):
        self.families = list(families)

    def collect(self) -> Iterator[Metric]:
        return iter(self.families)


class PoolCollector:
    def __init__(
        self,
        client: PoolAPIClient,
        resources: Sequence[str],
        *,
        catalogue: MetricCatalogue | None = None,
        error_policy: ErrorPolicy = ErrorPolicy.SKIP,
        max_concurrency: int = 8,
    ):
        self.client = client
        self.resources = tuple(resources)
        self.catalogue = catalogue or MetricCatalogue.build()
        self.error_policy = ErrorPolicy(error_policy)
        self.max_concurrency = max_concurrency

    async def _fetch(self, identifier: str) -> tuple[Resource, AccountSnapshot]:
        resource = Resource.parse(identifier)
        return resource, await self.client.fetch_account(resource)

    async def collect(self) -> CollectedMetrics:
        """Fetch every resource once and build this scrape's metric families.

        Under ErrorPolicy.EXIT the first CollectionError (in configured order)
        propagates. Under ErrorPolicy.SKIP the resource is left out, logged and
        reported as f2pool_up 0. Any other exception always propagates.
        """
        started = time.monotonic()
        results = await gather_settled(
            *(self._fetch(identifier) for identifier in self.resources),
            max_concurrency=self.max_concurrency,
        )

        families: dict[MetricDescriptor, GaugeMetricFamily] = {
            descriptor: descriptor.new_family() for descriptor in self.catalogue.pool_descriptors()
        }
        up = self.catalogue.up.new_family()
        errors = 0

        for identifier, result in zip(self.resources, results):
            if isinstance(result, CollectionError):
                if self.error_policy is ErrorPolicy.EXIT:
                    raise result
                errors += 1
                logger.error(f"Skipping {identifier} for this scrape: {result}")
                try:
                    resource = Resource.parse(identifier)
                except CollectionError:
                    continue
                up.add_metric([resource.currency, resource.account], 0)
                continue
            if isinstance(result, BaseException):
                raise result

            resource, snapshot = result
            self._add_snapshot(families, resource, snapshot)
            up.add_metric([resource.currency, resource.account], 1)

        scrape_errors = self.catalogue.scrape_errors.new_family()
        scrape_errors.add_metric([], errors)

        logger.debug(
            f"Collected {len(self.resources) - errors}/{len(self.resources)} resources "
            f"in {time.monotonic() - started:.3f}s"
        )
        return CollectedMetrics([*families.values(), up, scrape_errors])

    def _add_snapshot(
        self,
        families: dict[MetricDescriptor, GaugeMetricFamily],
        resource: Resource,
        snapshot: AccountSnapshot,
    ) -> None:
        c = self.catalogue
        account = [resource.currency, resource.account]
        totals = account + [ALL_WORKERS]

        families[c.balance].add_metric(account, snapshot.balance)
        families[c.paid].add_metric(account, snapshot.paid)
        families[c.value].add_metric(account, snapshot.value)
        families[c.value_last_day].add_metric(account, snapshot.value_last_day)
        families[c.stale_hashes_rejected_last_day].add_metric(totals, snapshot.stale_hashes_rejected_last_day)
        families[c.stale_hashes_rejected_last_hour].add_metric(totals, snapshot.stale_hashes_rejected_last_hour)
        families[c.hashes_last_day].add_metric(totals, snapshot.hashes_last_day)
        families[c.hashes_last_hour].add_metric(totals, snapshot.hashes_last_hour)
        families[c.hashrate].add_metric(totals, snapshot.hashrate)

        for worker in snapshot.workers:
            if worker.name == ALL_WORKERS:
                logger.warning(f"{resource.path}: skipping worker named {ALL_WORKERS!r}, it clashes with the account totals")
                continue
            labels = account + [worker.name]
            families[c.hashrate].add_metric(labels, worker.hashrate)
            families[c.hashes_last_hour].add_metric(labels, worker.hashes_last_hour)
            families[c.hashes_last_day].add_metric(labels, worker.hashes_last_day)
            families[c.stale_hashes_rejected_last_hour].add_metric(labels, worker.stale_hashes_rejected_last_hour)
            families[c.stale_hashes_rejected_last_day].add_metric(labels, worker.stale_hashes_rejected_last_day)

            # only a parsable timestamp yields a sample
            try:
                last_share = worker.last_share_at()
            except ValueError as e:
                logger.warning(f"{resource.path}: worker {worker.name!r} has no usable last share time: {e}")
            else:
                families[c.worker_shares_time].add_metric(labels, last_share.timestamp())
