"""Numeric unit extraction for Health Connect quantities.

Different SDK versions hand back Mass/Length/Energy values in different
shapes. ``extract_quantity`` tries, in order:

1. the typed units API, ``native.in_unit(UNIT)``
2. a plain ``value`` attribute
3. a unit-specific attribute such as ``in_kilograms``
4. zero-argument methods with those names (plus ``get_value()``)
5. the first decimal number in ``str(native)``

and falls back to a metric-specific default, so one unreadable sample
never aborts a batch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from healthbridge.domains.health.connectors.health_connect.records import (
    EnergyUnit,
    LengthUnit,
    MassUnit,
)

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_KG = 70.0
DEFAULT_HEIGHT_CM = 175.0
DEFAULT_ENERGY_KCAL = 0.0

# First number not preceded by a word character or dot. A trailing x rejects
# the 0 of a 0x prefix; other hex digits such as Mass@1b6d3586 still match.
_NUMBER_PATTERN = re.compile(r"(?<![\w.])(\d+(?:\.\d+)?)(?![\d.xX])")


@dataclass(frozen=True)
class QuantitySpec:
    """How to read one kind of quantity.

    ``scale`` converts the extracted value into the canonical unit;
    ``default`` is already canonical and is returned unscaled.
    """

    label: str
    unit: Enum
    accessor: str
    default: float
    scale: float = 1.0


MASS_KG = QuantitySpec("mass", MassUnit.KILOGRAMS, "in_kilograms", DEFAULT_WEIGHT_KG)
LENGTH_CM = QuantitySpec("length", LengthUnit.METERS, "in_meters", DEFAULT_HEIGHT_CM, scale=100.0)
ENERGY_KCAL = QuantitySpec("energy", EnergyUnit.KILOCALORIES, "in_kilocalories", DEFAULT_ENERGY_KCAL)


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _from_units_api(native: Any, spec: QuantitySpec) -> float | None:
    in_unit = getattr(native, "in_unit", None)
    if not callable(in_unit):
        return None
    try:
        return _as_float(in_unit(spec.unit))
    except Exception as exc:
        logger.debug("Units API rejected %s: %s", spec.label, exc)
        return None


def _from_value_attribute(native: Any, spec: QuantitySpec) -> float | None:
    value = getattr(native, "value", None)
    return None if callable(value) else _as_float(value)


def _from_named_attribute(native: Any, spec: QuantitySpec) -> float | None:
    value = getattr(native, spec.accessor, None)
    return None if callable(value) else _as_float(value)


def _from_accessor_methods(native: Any, spec: QuantitySpec) -> float | None:
    for name in (spec.accessor, "value", "get_value"):
        method = getattr(native, name, None)
        if not callable(method):
            continue
        try:
            value = _as_float(method())
        except Exception as exc:
            logger.debug("%s.%s() failed: %s", spec.label, name, exc)
            continue
        if value is not None:
            return value
    return None


def _from_text(native: Any, spec: QuantitySpec) -> float | None:
    try:
        text = str(native)
    except Exception:
        return None
    match = _NUMBER_PATTERN.search(text)
    return float(match.group(1)) if match else None


_STRATEGIES: tuple[tuple[str, Callable[[Any, QuantitySpec], float | None]], ...] = (
    ("units_api", _from_units_api),
    ("value_attribute", _from_value_attribute),
    ("named_attribute", _from_named_attribute),
    ("accessor_method", _from_accessor_methods),
    ("text", _from_text),
)


def extract_quantity(native: Any, spec: QuantitySpec) -> float:
    """Extract a quantity in its canonical unit, or ``spec.default``."""
    if native is not None:
        for name, strategy in _STRATEGIES:
            try:
                value = strategy(native, spec)
            except Exception as exc:
                logger.debug("Reading %s via %s failed: %s", spec.label, name, exc)
                continue
            if value is not None:
                logger.debug("Read %s via %s: %s", spec.label, name, value)
                return value * spec.scale
    logger.warning(
        "Could not read %s from %s; using default %s",
        spec.label, type(native).__name__, spec.default,
    )
    return spec.default


def extract_mass_kg(native: Any) -> float:
    return extract_quantity(native, MASS_KG)


def extract_length_cm(native: Any) -> float:
    return extract_quantity(native, LENGTH_CM)


def extract_energy_kcal(native: Any) -> float:
    return extract_quantity(native, ENERGY_KCAL)
