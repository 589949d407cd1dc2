import json
from typing import Callable, List, Union

import httpx
import pytest

from app.core.auth_http import AuthHttpClient


DEVICES_JSON = json.dumps(
    [
        {
            "name": "Living Remo",
            "id": "device-living",
            "created_at": "2018-01-01T00:00:00Z",
            "updated_at": "2018-01-02T00:00:00Z",
            "firmware_version": "Remo/1.0.62-gabbf5bd",
            "temperature_offset": 0,
            "humidity_offset": 0,
            "users": [
                {"id": "user-1", "nickname": "John Doe", "superuser": True},
            ],
            "newest_events": {
                "hu": {"val": 50, "created_at": "2018-01-05T00:00:00Z"},
                "il": {"val": 25.2, "created_at": "2018-01-05T00:00:00Z"},
                "te": {"val": 27.59, "created_at": "2018-01-05T00:00:00Z"},
                "mo": {"val": 1, "created_at": "2018-01-05T00:00:00Z"},
            },
        },
        {
            "name": "Remo E lite",
            "id": "device-elite",
            "created_at": "2020-05-13T02:23:18Z",
            "updated_at": "2020-05-13T02:27:16Z",
            "firmware_version": "Remo-E-lite/1.1.2",
            "temperature_offset": 0,
            "humidity_offset": 0,
            "users": [],
            "newest_events": {},
        },
    ]
)

SMART_METER_PROPERTIES = [
    {"name": "coefficient", "epc": 211, "val": "1", "updated_at": "2020-05-20T10:42:21Z"},
    {"name": "cumulative_electric_energy_effective_digits", "epc": 215, "val": "6", "updated_at": "2020-05-20T10:42:21Z"},
    {"name": "normal_direction_cumulative_electric_energy", "epc": 224, "val": "50851", "updated_at": "2020-05-20T10:42:21Z"},
    {"name": "cumulative_electric_energy_unit", "epc": 225, "val": "1", "updated_at": "2020-05-20T10:42:21Z"},
    {"name": "reverse_direction_cumulative_electric_energy", "epc": 227, "val": "11", "updated_at": "2020-05-20T10:42:21Z"},
    {"name": "measured_instantaneous", "epc": 231, "val": "568", "updated_at": "2020-05-20T10:42:21Z"},
]

APPLIANCES_JSON = json.dumps(
    [
        {
            "id": "appliance-meter",
            "device": {
                "name": "Remo E lite",
                "id": "device-elite",
                "created_at": "2020-05-13T02:23:18Z",
                "updated_at": "2020-05-13T02:27:16Z",
                "mac_address": "xx:xx:xx:xx:xx:xx",
                "serial_number": "XXXXXXXXXXXXXX",
                "firmware_version": "Remo-E-lite/1.1.2",
                "temperature_offset": 0,
                "humidity_offset": 0,
            },
            "model": {
                "id": "model-1",
                "manufacturer": "",
                "name": "Smart Meter",
                "image": "ico_smartmeter",
            },
            "type": "EL_SMART_METER",
            "nickname": "Smart Meter",
            "image": "ico_smartmeter",
            "settings": None,
            "aircon": None,
            "signals": [],
            "smart_meter": {"echonetlite_properties": SMART_METER_PROPERTIES},
        },
        {
            "id": "appliance-aircon",
            "device": {
                "name": "Living Remo",
                "id": "device-living",
                "firmware_version": "Remo/1.0.62-gabbf5bd",
            },
            "model": None,
            "type": "AC",
            "nickname": "Air conditioner",
            "image": "ico_ac_1",
        },
    ]
)

RATE_LIMIT_HEADERS = {
    "X-Rate-Limit-Limit": "30",
    "X-Rate-Limit-Remaining": "29",
    "X-Rate-Limit-Reset": "1532778912",
}

Reply = Union[httpx.Response, Exception]


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 1_600_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemoApi:
    """Serves queued replies per path and records every request."""

    def __init__(self) -> None:
        self.replies: dict = {}
        self.requests: List[httpx.Request] = []

    def queue(self, path: str, *replies: Reply) -> None:
        self.replies.setdefault(path, []).extend(replies)

    def calls(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        pending = self.replies.get(request.url.path)
        if not pending:
            return httpx.Response(404, json={"code": 404, "message": "not found"})
        reply = pending.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def ok(body: str, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(200, content=body.encode("utf-8"), headers=headers or {})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def remo_api() -> FakeRemoApi:
    return FakeRemoApi()


@pytest.fixture
def auth_client(remo_api) -> AuthHttpClient:
    client = AuthHttpClient("test-token", timeout=1.0, transport=httpx.MockTransport(remo_api.handler))
    yield client
    client.close()


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    return ok


@pytest.fixture
def devices_json() -> str:
    return DEVICES_JSON


@pytest.fixture
def appliances_json() -> str:
    return APPLIANCES_JSON


@pytest.fixture
def rate_limit_headers() -> dict:
    return dict(RATE_LIMIT_HEADERS)


@pytest.fixture
def smart_meter_properties() -> list:
    return [dict(prop) for prop in SMART_METER_PROPERTIES]
