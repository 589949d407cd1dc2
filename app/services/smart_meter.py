"""Decoding of ECHONET Lite smart meter properties into energy readings."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List

from app.schemas import Appliance

EPC_NORMAL_DIRECTION_CUMULATIVE_ELECTRIC_ENERGY = 224
EPC_REVERSE_DIRECTION_CUMULATIVE_ELECTRIC_ENERGY = 227
EPC_COEFFICIENT = 211
EPC_CUMULATIVE_ELECTRIC_ENERGY_UNIT = 225
EPC_CUMULATIVE_ELECTRIC_ENERGY_EFFECTIVE_DIGITS = 215
EPC_MEASURED_INSTANTANEOUS = 231

EXPECTED_PROPERTY_COUNT = 6

# Optional sign followed by ASCII digits; stricter than int()
INTEGER_VALUE = re.compile(r"[+-]?[0-9]+")

# EPC code -> EnergyReading field holding its integer value
EPC_FIELDS: Dict[int, str] = {
    EPC_NORMAL_DIRECTION_CUMULATIVE_ELECTRIC_ENERGY: "normal_energy",
    EPC_REVERSE_DIRECTION_CUMULATIVE_ELECTRIC_ENERGY: "reverse_energy",
    EPC_COEFFICIENT: "coefficient",
    EPC_CUMULATIVE_ELECTRIC_ENERGY_UNIT: "energy_unit",
    EPC_CUMULATIVE_ELECTRIC_ENERGY_EFFECTIVE_DIGITS: "effective_digits",
    EPC_MEASURED_INSTANTANEOUS: "measured_instantaneous",
}

# Unit code (EPC 225) -> kWh multiplier
ENERGY_UNITS: Dict[int, float] = {
    0: 1,
    1: 0.1,
    2: 0.01,
    3: 0.001,
    4: 0.0001,
    10: 10,
    11: 100,
    12: 1000,
    13: 10000,
}


class SmartMeterError(ValueError):
    """Raised when an appliance's smart meter data cannot be decoded."""


@dataclass(frozen=True)
class EnergyReading:
    """Decoded smart meter values; all fields are set or none are."""

    normal_energy: int
    reverse_energy: int
    coefficient: int
    energy_unit: float
    effective_digits: int
    measured_instantaneous: int

    @property
    def cumulative_electric_energy(self) -> float:
        """Net cumulative energy in kWh."""
        return float((self.normal_energy - self.reverse_energy) * self.coefficient) * self.energy_unit


def get_smart_meters(appliances: Iterable[Appliance]) -> List[Appliance]:
    """Keep only the appliances that are smart meters."""
    return [app for app in appliances if app.is_smart_meter]


def _energy_unit(code: int) -> float:
    try:
        return ENERGY_UNITS[code]
    except KeyError:
        raise SmartMeterError(f"invalid unit code value: {code}") from None


def decode_energy(appliance: Appliance) -> EnergyReading:
    """Decode the six ECHONET Lite properties of a smart meter appliance.

    Properties may arrive in any order and are matched by EPC code; unknown
    codes are skipped. Unlike rate-limit header parsing, decoding is strict:
    the first malformed value aborts the whole reading.

    Raises:
        SmartMeterError: if smart meter data is missing, the property count
            is not exactly six, a value is not an integer, the unit code is
            unknown, or a known property never appeared.
    """
    device_name = appliance.device.name
    if appliance.smart_meter is None:
        raise SmartMeterError(f"'{device_name}' does not have smart_meter data")

    properties = appliance.smart_meter.echonetlite_properties
    if len(properties) != EXPECTED_PROPERTY_COUNT:
        raise SmartMeterError(
            f"'{device_name}' has unexpected property count: {len(properties)}"
        )

    values: Dict[str, float] = {}
    for prop in properties:
        field_name = EPC_FIELDS.get(prop.epc)
        if field_name is None:
            continue
        if not INTEGER_VALUE.fullmatch(prop.val):
            raise SmartMeterError(f"'{device_name}' has invalid {field_name} value: {prop.val!r}")
        number = int(prop.val)
        if prop.epc == EPC_CUMULATIVE_ELECTRIC_ENERGY_UNIT:
            values[field_name] = _energy_unit(number)
        else:
            values[field_name] = number

    missing = sorted(set(EPC_FIELDS.values()) - values.keys())
    if missing:
        raise SmartMeterError(f"'{device_name}' is missing properties: {', '.join(missing)}")

    return EnergyReading(**values)
