"""Prometheus collector republishing label-value cardinality as gauges.

Every scrape performs one label_values query for the configured dimension
and translates the response into two gauge families:

    grafana_mimir_top_cardinality_total{dimension="job"} 100
    grafana_mimir_top_cardinality{dimension="job",exported_job="a"} 60

A failed query yields no samples at all, so a broken backend shows up as
missing data rather than as a zero cardinality.
"""

import logging
from collections.abc import Iterable

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from cardinality_exporter.exceptions import CardinalityClientError
from cardinality_exporter.services.cardinality_client import CardinalityClient

logger = logging.getLogger(__name__)

TOTAL_METRIC_NAME = "grafana_mimir_top_cardinality_total"
TOTAL_METRIC_HELP = "Total number of time series in Mimir"
METRIC_NAME = "grafana_mimir_top_cardinality"
METRIC_HELP = "Cardinality of time series in Mimir"

DIMENSION_LABEL = "dimension"


class CardinalityCollector(Collector):
    """Collector that queries the cardinality API on every scrape.

    The collector is immutable after construction and keeps nothing between
    scrapes, so concurrent collect() calls need no locking.
    """

    def __init__(
        self,
        client: CardinalityClient,
        dimension: str,
        selector: str = "",
        timeout: float = 60.0,
    ) -> None:
        """Initialize the collector.

        Args:
            client: Client used to query the backend
            dimension: Label name whose values are broken down
            selector: Optional series selector passed to the backend
            timeout: Deadline in seconds for the query made by each scrape
        """
        self._client = client
        self._dimension = dimension
        self._selector = selector
        self._timeout = timeout
        self._value_label = f"exported_{dimension}"

    @property
    def dimension(self) -> str:
        return self._dimension

    def describe(self) -> Iterable[GaugeMetricFamily]:
        return [self._total_family(), self._value_family()]

    def collect(self) -> Iterable[GaugeMetricFamily]:
        try:
            response = self._client.label_values_cardinality(
                [self._dimension], self._selector, timeout=self._timeout
            )
        except CardinalityClientError as e:
            logger.error(
                "Failed to get cardinality for dimension %s: %s",
                self._dimension,
                e,
            )
            return

        total = self._total_family()
        total.add_metric([self._dimension], float(response.series_count_total))

        values = self._value_family()
        for label in response.labels:
            if label.label_name != self._dimension:
                # The backend only returns the requested label names
                continue

            for entry in label.cardinality:
                values.add_metric(
                    [self._dimension, entry.label_value],
                    float(entry.series_count),
                )

        yield total
        yield values

    def _total_family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            TOTAL_METRIC_NAME, TOTAL_METRIC_HELP, labels=[DIMENSION_LABEL]
        )

    def _value_family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            METRIC_NAME, METRIC_HELP, labels=[DIMENSION_LABEL, self._value_label]
        )
