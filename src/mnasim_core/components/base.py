# src/mnasim_core/components/base.py

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Set, Tuple, Type

import pint

from ..netlist.data_structures import Terminal
from ..units import to_magnitude
from .base_enums import ComponentKind
from .exceptions import ComponentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterSpec:
    """
    Declaration of one component parameter.

    `unit` is the pint unit the value is stored in; None marks a non-numeric setting
    (a choice, a flag or a label). `choices` restricts settings to a fixed set.
    """
    unit: Optional[str]
    default: Any
    choices: Optional[Tuple[Any, ...]] = None
    positive: bool = False
    non_negative: bool = False


class ComponentBase(ABC):
    """
    The abstract base class for all circuit components.

    A component owns its terminals and a validated property bag. It says nothing
    about how it is stamped: the simulation package maps each ComponentKind to a
    stamp function. Class-level flags describe what the solvers need to know
    before stamping (branch unknowns, internal nets, nonlinearity, sources).
    """
    kind: ClassVar[ComponentKind]
    component_type_str: ClassVar[str] = "BaseComponent"
    id_prefix: ClassVar[str] = "X"
    is_source: ClassVar[bool] = False
    is_nonlinear: ClassVar[bool] = False
    internal_net_names: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, instance_id: str, properties: Optional[Dict[str, Any]] = None):
        """
        Args:
            instance_id: The unique id of this component (e.g. 'R1').
            properties: Raw parameter values keyed by declared parameter name. Missing
                        parameters take their declared default.
        """
        self.instance_id: str = instance_id
        self.properties: Dict[str, Any] = self._resolve_properties(properties or {})

        hidden = set(type(self).declare_hidden_ports())
        self.terminals: List[Terminal] = [
            Terminal(component=self, name=port, hidden=port in hidden)
            for port in type(self).declare_ports() + type(self).declare_hidden_ports()
        ]
        self._terminal_index: Dict[str, Terminal] = {t.name: t for t in self.terminals}
        self._refresh_optional_ports()
        logger.debug(f"Initialized {type(self).__name__} '{self.instance_id}'")

    @property
    def fqn(self) -> str:
        return self.instance_id

    # --- Declarations ---

    @classmethod
    @abstractmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        """Declare parameter names and their specifications."""
        pass

    @classmethod
    @abstractmethod
    def declare_ports(cls) -> List[str]:
        """Declare the user-visible terminal names, in stamping order."""
        pass

    @classmethod
    def declare_hidden_ports(cls) -> List[str]:
        """Terminals that exist for the model only and are never wired by the user."""
        return []

    def branch_labels(self) -> List[str]:
        """
        Labels of the branch-current unknowns this component adds to the MNA system,
        in the order its stamp function uses them. Empty for conductance-only elements.
        """
        return []

    def optional_ports(self) -> Set[str]:
        """User-visible terminals that may legitimately be left unconnected."""
        return set()

    def connectivity(self) -> List[Tuple[str, str]]:
        """
        Pairs of terminals joined by a conductive (or coupling) path inside the component.
        Used for topology diagnostics only. Components with more than two ports must
        override this.
        """
        ports = type(self).declare_ports()
        if len(ports) == 2:
            return [(ports[0], ports[1])]
        if len(ports) > 2:
            logger.error(
                f"Component type '{self.component_type_str}' has more than two ports but does not "
                f"override connectivity(); its internal connections are invisible to topology checks."
            )
        return []

    def grounded_ports(self) -> List[str]:
        """Terminals with a model-internal conductance to the ground reference."""
        return []

    # --- Accessors ---

    def terminal(self, name: str) -> Terminal:
        try:
            return self._terminal_index[name]
        except KeyError:
            raise KeyError(
                f"Component '{self.instance_id}' ({self.component_type_str}) has no terminal '{name}'. "
                f"Terminals are: {[t.name for t in self.terminals]}."
            ) from None

    def update_properties(self, **values: Any) -> None:
        """Re-validates the property bag with the given values changed."""
        merged = dict(self.properties)
        merged.update(values)
        self.properties = self._resolve_properties(merged)
        self._refresh_optional_ports()

    # --- Internals ---

    def _refresh_optional_ports(self) -> None:
        optional = self.optional_ports()
        for terminal in self.terminals:
            terminal.optional = terminal.name in optional

    def _resolve_properties(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        specs = type(self).declare_parameters()
        unknown = sorted(set(raw) - set(specs))
        if unknown:
            raise ComponentError(
                component_fqn=self.instance_id,
                details=f"Unknown parameter(s) {unknown} for type '{self.component_type_str}'. "
                        f"Declared parameters are: {sorted(specs)}."
            )
        return {name: self._resolve_value(name, spec, raw.get(name, spec.default)) for name, spec in specs.items()}

    def _resolve_value(self, name: str, spec: ParameterSpec, value: Any) -> Any:
        if spec.unit is None:
            if isinstance(spec.default, bool):
                if not isinstance(value, bool):
                    raise ComponentError(self.instance_id, f"Parameter '{name}' must be true or false, got {value!r}.")
                return value
            if spec.choices is not None:
                normalized = value.lower() if isinstance(value, str) else value
                if normalized not in spec.choices:
                    raise ComponentError(
                        self.instance_id,
                        f"Parameter '{name}' must be one of {list(spec.choices)}, got {value!r}."
                    )
                return normalized
            return value

        try:
            magnitude = to_magnitude(value, spec.unit)
        except (pint.DimensionalityError, pint.UndefinedUnitError, TypeError, ValueError) as e:
            raise ComponentError(
                self.instance_id,
                f"Parameter '{name}' could not be read as a value in '{spec.unit}': {e}"
            ) from e

        if not math.isfinite(magnitude):
            raise ComponentError(self.instance_id, f"Parameter '{name}' must be finite, got {magnitude}.")
        if spec.positive and magnitude <= 0:
            raise ComponentError(self.instance_id, f"Parameter '{name}' must be positive, got {magnitude} {spec.unit}.")
        if spec.non_negative and magnitude < 0:
            raise ComponentError(self.instance_id, f"Parameter '{name}' must be non-negative, got {magnitude} {spec.unit}.")
        return magnitude

    def __str__(self) -> str:
        return f"{type(self).__name__}('{self.instance_id}')"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(instance_id='{self.instance_id}')"


# --- Global Component Registry and Decorator ---

COMPONENT_REGISTRY: Dict[str, Type[ComponentBase]] = {}
KIND_REGISTRY: Dict[ComponentKind, Type[ComponentBase]] = {}


def register_component(kind: ComponentKind):
    """
    A class decorator that binds a component class to its ComponentKind and registers it
    under the kind's type name, making it available to the netlist parser and builder.
    """
    def decorator(cls: Type[ComponentBase]):
        if not issubclass(cls, ComponentBase):
            raise TypeError(f"Class {cls.__name__} must inherit from ComponentBase.")

        ports = cls.declare_ports() + cls.declare_hidden_ports()
        if not all(isinstance(p, str) and p for p in ports):
            raise TypeError(f"Component class '{cls.__name__}' must declare ports as non-empty strings, got {ports}.")
        if len(set(ports)) != len(ports):
            raise TypeError(f"Component class '{cls.__name__}' declares duplicate ports: {ports}.")

        params = cls.declare_parameters()
        if not isinstance(params, dict) or not all(isinstance(v, ParameterSpec) for v in params.values()):
            raise TypeError(f"Component class '{cls.__name__}' must declare parameters as a Dict[str, ParameterSpec].")

        if kind in KIND_REGISTRY:
            logger.warning(f"Component kind '{kind}' is being redefined by {cls.__name__}.")
        cls.kind = kind
        cls.component_type_str = kind.value
        COMPONENT_REGISTRY[kind.value] = cls
        KIND_REGISTRY[kind] = cls
        logger.debug(f"Registered component type '{kind.value}' -> {cls.__name__}")
        return cls
    return decorator


def get_component_class(type_str: str) -> Type[ComponentBase]:
    """Looks up a registered component class by its type name."""
    try:
        return COMPONENT_REGISTRY[type_str]
    except KeyError:
        raise ComponentError(
            component_fqn=type_str,
            details=f"Unknown component type '{type_str}'. Available types: {sorted(COMPONENT_REGISTRY)}."
        ) from None
