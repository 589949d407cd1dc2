"""Pydantic models for the Nature Remo cloud API payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter

SMART_METER_TYPE = "EL_SMART_METER"


def _null_as(default: Any):
    return BeforeValidator(lambda value: default if value is None else value)


# Informational fields: the API sends null for unset values, which must not
# reject the whole list. Identity fields (id, name, epc, val) stay strict.
Text = Annotated[str, _null_as("")]
Offset = Annotated[int, _null_as(0)]


class RemoModel(BaseModel):
    """Base for upstream payloads: immutable, unknown fields ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class User(RemoModel):
    id: str
    nickname: Text = ""
    superuser: Annotated[bool, _null_as(False)] = False


class SensorValue(RemoModel):
    value: float = Field(alias="val")
    created_at: Optional[datetime] = None


class NewestEvents(RemoModel):
    """Latest sensor readings of a device, keyed by the API's short names."""

    temperature: Optional[SensorValue] = Field(default=None, alias="te")
    humidity: Optional[SensorValue] = Field(default=None, alias="hu")
    illumination: Optional[SensorValue] = Field(default=None, alias="il")
    motion: Optional[SensorValue] = Field(default=None, alias="mo")


class Device(RemoModel):
    name: str
    id: str
    created_at: Text = ""
    updated_at: Text = ""
    firmware_version: Text = ""
    temperature_offset: Offset = 0
    humidity_offset: Offset = 0
    users: Annotated[List[User], _null_as([])] = Field(default_factory=list)
    newest_events: Optional[NewestEvents] = None

    @property
    def is_remo(self) -> bool:
        return self.firmware_version.startswith("Remo/")

    @property
    def is_remo_e_lite(self) -> bool:
        return self.firmware_version.startswith("Remo-E-lite/")


class ApplianceModel(RemoModel):
    id: Text = ""
    manufacturer: Text = ""
    name: Text = ""
    image: Text = ""


class EchonetliteProperty(RemoModel):
    name: Text = ""
    epc: int
    val: str
    updated_at: Optional[datetime] = None


class SmartMeter(RemoModel):
    echonetlite_properties: Annotated[List[EchonetliteProperty], _null_as([])] = Field(default_factory=list)


class Appliance(RemoModel):
    id: str
    device: Device
    model: Optional[ApplianceModel] = None
    type: Text = ""
    nickname: Text = ""
    image: Text = ""
    smart_meter: Optional[SmartMeter] = None

    @property
    def is_smart_meter(self) -> bool:
        return self.type == SMART_METER_TYPE


DeviceList = TypeAdapter(List[Device])
ApplianceList = TypeAdapter(List[Appliance])
