"""Prometheus collector translating Remo API data into metrics."""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Tuple

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from app.core.cache import FetchResult
from app.core.logging_config import get_logger
from app.core.rate_limit import RateLimitMeta
from app.core.remo_client import RemoClientError, RemoGatherer
from app.schemas import Appliance, Device
from app.services.smart_meter import SmartMeterError, decode_energy, get_smart_meters

logger = get_logger(__name__)

NAMESPACE = "remo"
DEVICE_LABELS = ["name", "id"]

SENSOR_METRICS: Tuple[Tuple[str, str], ...] = (
    ("temperature", "The temperature of the remo device"),
    ("humidity", "The humidity of the remo device"),
    ("illumination", "The illumination of the remo device"),
)

ENERGY_METRICS: Tuple[Tuple[str, str, str], ...] = (
    (
        "normal_direction_cumulative_electric_energy",
        "normal_energy",
        "The normal direction cumulative electric energy of the smart meter",
    ),
    (
        "reverse_direction_cumulative_electric_energy",
        "reverse_energy",
        "The reverse direction cumulative electric energy of the smart meter",
    ),
    ("coefficient", "coefficient", "The coefficient of the cumulative electric energy"),
    (
        "cumulative_electric_energy_unit",
        "energy_unit",
        "The unit of the cumulative electric energy in kWh",
    ),
    (
        "cumulative_electric_energy_effective_digits",
        "effective_digits",
        "The number of effective digits of the cumulative electric energy",
    ),
    ("measured_instantaneous", "measured_instantaneous", "The measured instantaneous power in W"),
    (
        "cumulative_electric_energy",
        "cumulative_electric_energy",
        "The net cumulative electric energy in kWh",
    ),
)

RATE_LIMIT_METRICS: Tuple[Tuple[str, str, str], ...] = (
    ("x_rate_limit_limit", "limit", "The rate limit for the remo API"),
    ("x_rate_limit_remaining", "remaining", "The number of requests remaining in the current rate limit window"),
    ("x_rate_limit_reset", "reset", "The time at which the current rate limit window resets in UTC epoch seconds"),
)


def _name(metric: str) -> str:
    return f"{NAMESPACE}_{metric}"


class RemoExporter(Collector):
    """Collects device, smart meter and API quota metrics on every scrape.

    A failed fetch skips that resource kind for the scrape; a smart meter
    that cannot be decoded is skipped on its own. Neither aborts the scrape.
    """

    def __init__(self, client: RemoGatherer) -> None:
        self._client = client
        self._request_counts: Dict[Tuple[str, str], int] = defaultdict(int)
        self._state_lock = threading.Lock()
        # Quota gauges report the last response actually received from the API
        self._last_meta: Optional[RateLimitMeta] = None
        self._last_meta_fresh = False

    def describe(self) -> Iterator[Metric]:
        for metric, help_text in SENSOR_METRICS:
            yield GaugeMetricFamily(_name(metric), help_text, labels=DEVICE_LABELS)
        yield GaugeMetricFamily(
            _name("motion_timestamp"), "The last motion detected epoch of the remo device", labels=DEVICE_LABELS
        )
        for metric, _field, help_text in ENERGY_METRICS:
            yield GaugeMetricFamily(_name(metric), help_text, labels=DEVICE_LABELS)
        for metric, _field, help_text in RATE_LIMIT_METRICS:
            yield GaugeMetricFamily(_name(metric), help_text)
        yield CounterMetricFamily(
            _name("http_requests"), "Count of HTTP requests to the remo API", labels=["code", "api"]
        )

    def collect(self) -> Iterator[Metric]:
        devices = self._fetch("devices", self._client.get_devices)
        if devices is not None:
            yield from self._device_metrics(devices.payload)

        appliances = self._fetch("appliances", self._client.get_appliances)
        if appliances is not None:
            yield from self._smart_meter_metrics(appliances.payload)

        with self._state_lock:
            last_meta = self._last_meta
        if last_meta is not None:
            for metric, field_name, help_text in RATE_LIMIT_METRICS:
                yield GaugeMetricFamily(_name(metric), help_text, value=getattr(last_meta, field_name))

        yield self._request_counter()

    def _fetch(self, api: str, fetch) -> Optional[FetchResult]:
        try:
            result = fetch()
        except RemoClientError as exc:
            logger.error("remo_fetch_failed", api=api, exception=str(exc))
            return None

        with self._state_lock:
            if not result.from_cache:
                self._request_counts[(str(result.status_code), api)] += 1
                if result.meta is not None:
                    self._last_meta = result.meta
                    self._last_meta_fresh = True
            elif result.meta is not None and not self._last_meta_fresh:
                # Cached meta only stands in until a response is seen by this exporter.
                self._last_meta = result.meta
        return result

    def _request_counter(self) -> CounterMetricFamily:
        counter = CounterMetricFamily(
            _name("http_requests"), "Count of HTTP requests to the remo API", labels=["code", "api"]
        )
        with self._state_lock:
            for (code, api), count in sorted(self._request_counts.items()):
                counter.add_metric([code, api], count)
        return counter

    def _device_metrics(self, devices: List[Device]) -> Iterator[Metric]:
        families = {
            metric: GaugeMetricFamily(_name(metric), help_text, labels=DEVICE_LABELS)
            for metric, help_text in SENSOR_METRICS
        }
        motion = GaugeMetricFamily(
            _name("motion_timestamp"), "The last motion detected epoch of the remo device", labels=DEVICE_LABELS
        )

        for device in devices:
            # Remo E lite units only bridge the smart meter and report no sensors.
            if device.is_remo_e_lite or device.newest_events is None:
                continue
            events = device.newest_events
            labels = [device.name, device.id]
            for metric, _help in SENSOR_METRICS:
                reading = getattr(events, metric)
                if reading is not None:
                    families[metric].add_metric(labels, reading.value)
            if events.motion is not None and events.motion.created_at is not None:
                motion.add_metric(labels, events.motion.created_at.timestamp())

        yield from families.values()
        yield motion

    def _smart_meter_metrics(self, appliances: List[Appliance]) -> Iterator[Metric]:
        families = {
            metric: GaugeMetricFamily(_name(metric), help_text, labels=DEVICE_LABELS)
            for metric, _field, help_text in ENERGY_METRICS
        }

        for appliance in get_smart_meters(appliances):
            try:
                reading = decode_energy(appliance)
            except SmartMeterError as exc:
                logger.warning(
                    "smart_meter_decode_failed",
                    appliance_id=appliance.id,
                    device=appliance.device.name,
                    exception=str(exc),
                )
                continue
            labels = [appliance.device.name, appliance.device.id]
            for metric, field_name, _help in ENERGY_METRICS:
                families[metric].add_metric(labels, float(getattr(reading, field_name)))

        yield from families.values()
