from __future__ import annotations

from windbarb.core.exceptions import ConfigError
from windbarb.models import WindObservation

# Metres per second for one unit of each supported speed unit.
_MPS_PER_UNIT = {
    "m/s": 1.0,
    "mps": 1.0,
    "mph": 0.44704,
    "kph": 1 / 3.6,
    "km/h": 1 / 3.6,
    "kmh": 1 / 3.6,
    "knots": 0.514444,
    "kt": 0.514444,
    "kn": 0.514444,
}


def _factor(unit: str) -> float:
    factor = _MPS_PER_UNIT.get(unit.strip().lower())
    if factor is None:
        raise ConfigError(f"Unsupported wind speed unit: {unit!r}")
    return factor


def convert_wind_speed(speed: float, from_unit: str, to_unit: str = "m/s") -> float:
    return speed * _factor(from_unit) / _factor(to_unit)


def normalize_speed_units(observations: list[WindObservation], unit: str) -> list[WindObservation]:
    """Rescale speeds and gusts reported in ``unit`` to m/s."""
    if _factor(unit) == 1.0:
        return observations
    return [
        item.model_copy(
            update={
                "speed_mps": convert_wind_speed(item.speed_mps, unit),
                "gust_mps": convert_wind_speed(item.gust_mps, unit) if item.gust_mps is not None else None,
            }
        )
        for item in observations
    ]
