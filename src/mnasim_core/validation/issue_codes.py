# src/mnasim_core/validation/issue_codes.py
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class ValidationIssueCode(Enum):
    """
    Registry of validation issue codes and their message templates.
    Each enum member's value is a tuple: (code_str, message_template_str).
    """

    # --- Circuit-Level Preconditions (CIRCUIT_...) ---
    CIRCUIT_EMPTY = ("CIRCUIT_EMPTY", "Circuit '{circuit_name}' is empty: add components before running an analysis.")
    GND_MISSING = ("GND_MISSING", "Circuit '{circuit_name}' has no ground reference: add a Ground component and wire it to the circuit.")
    SRC_MISSING = ("SRC_MISSING", "Circuit '{circuit_name}' has no source: add a VoltageSource or ThreePhaseSource.")

    # --- Connectivity (TERM_..., NET_...) ---
    TERM_UNCONNECTED = ("TERM_UNCONNECTED", "Terminal '{terminal_fqn}' of component '{component_fqn}' is not connected to anything.")
    NET_FLOATING = ("NET_FLOATING", "Net '{net_name}' has no path to ground; its voltage is undefined (terminals: {terminals}).")

    # --- Netlist Definition (COMP_..., PARAM_...) ---
    COMP_TYPE_UNKNOWN = ("COMP_TYPE_UNKNOWN", "Component '{component_fqn}' specifies an unregistered type '{component_type}'. Available types: {available_types}.")
    COMP_PORT_UNDECLARED = ("COMP_PORT_UNDECLARED", "Component '{component_fqn}' uses undeclared port(s): {extra_ports}. Declared ports are: {declared_ports}.")
    PARAM_UNKNOWN = ("PARAM_UNKNOWN", "Component '{component_fqn}' defines parameter(s) {parameter_names} which are not declared by type '{component_type}'. Declared parameters are: {declared_params}.")

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def template(self) -> str:
        return self.value[1]

    def format_message(self, **kwargs) -> str:
        """Formats the message template with provided keyword arguments."""
        try:
            return self.template.format(**kwargs)
        except KeyError as e:
            logger.error(f"Missing key {e} for formatting message template of {self.name} (code: {self.code}): '{self.template}'. Provided args: {kwargs}")
            return f"Error formatting message for {self.code}: Missing key {e}. Template: '{self.template}' Args: {kwargs}"
