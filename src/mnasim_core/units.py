# src/mnasim_core/units.py
import logging
from typing import Any, Optional

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.debug("Pint Unit Registry initialized.")


def to_magnitude(value: Any, unit: Optional[str]) -> float:
    """
    Converts a netlist property value into a float in the given unit.

    Plain numbers are taken to be already expressed in `unit`. Strings are parsed
    by pint ("1 kohm", "100 nF", "50 Hz") and converted; a bare numeric string
    ("1e3") is treated like a plain number. `pint.DimensionalityError` and
    `pint.UndefinedUnitError` propagate to the caller.
    """
    if isinstance(value, bool):
        raise TypeError(f"Expected a numeric value, got boolean {value!r}.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, Quantity):
        qty = value
    elif isinstance(value, str):
        qty = Quantity(value.strip())
    else:
        raise TypeError(f"Cannot interpret {value!r} (type {type(value).__name__}) as a quantity.")

    if not isinstance(qty, Quantity):
        return float(qty)
    if qty.unitless:
        return float(qty.magnitude)
    if unit is None or unit == "dimensionless":
        return float(qty.to("dimensionless").magnitude)
    return float(qty.to(unit).magnitude)
