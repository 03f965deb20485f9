# src/mnasim_core/netlist_builder.py
"""
Turns a parsed netlist (IR) into a Netlist of components and wires.

The YAML format names nets; the Netlist connects terminals with wires. For every
named net the builder chains the terminals mapped to it with wires, in component
order, and labels each terminal with the net name so the resolved net keeps it.
Any terminal on the IR's ground net is tied to an implicit Ground component.

Every build-stage failure (unknown type, undeclared port or parameter, invalid
parameter value) surfaces as a single NetlistBuildError carrying a diagnostic
report.
"""
import logging
from typing import Dict, List

from .components.base_enums import ComponentKind
from .errors import DiagnosableError, NetlistBuildError, format_diagnostic_report
from .netlist.data_structures import Netlist, Terminal
from .parser.raw_data import ParsedCircuitNode
from .validation import CircuitValidator, SemanticValidationError

logger = logging.getLogger(__name__)


class NetlistBuilder:
    """Synthesizes a simulation-ready Netlist from a ParsedCircuitNode."""

    def build(self, ir: ParsedCircuitNode) -> Netlist:
        logger.info(f"Building netlist '{ir.circuit_name}' from {ir.source_yaml_path}.")
        try:
            issues = CircuitValidator.validate_definition(ir)
            if issues:
                raise SemanticValidationError(issues)
            netlist = self._synthesize(ir)
            logger.info(
                f"Netlist '{netlist.name}' built: {len(netlist)} components, {len(netlist.wires)} wires."
            )
            return netlist

        except DiagnosableError as e:
            raise NetlistBuildError(e.get_diagnostic_report()) from e

        except Exception as e:
            report = format_diagnostic_report(
                error_type=f"An Unexpected Error Occurred ({type(e).__name__})",
                details=f"The netlist builder encountered an unexpected internal error: {e}",
                suggestion="This may indicate a bug in mnasim_core. Please review the traceback.",
                context={'source_file': ir.source_yaml_path}
            )
            raise NetlistBuildError(report) from e

    def _synthesize(self, ir: ParsedCircuitNode) -> Netlist:
        netlist = Netlist(name=ir.circuit_name)
        net_terminals: Dict[str, List[Terminal]] = {}

        for comp_ir in ir.components:
            component = netlist.create(comp_ir.component_type, comp_ir.instance_id, **comp_ir.raw_parameters_dict)
            for port_name, net_name in comp_ir.raw_ports_dict.items():
                terminal = component.terminal(port_name)
                terminal.net_label = net_name
                net_terminals.setdefault(net_name, []).append(terminal)

        ground_terminals = net_terminals.get(ir.ground_net_name)
        if ground_terminals and not any(t.component.kind is ComponentKind.GROUND for t in ground_terminals):
            ground = netlist.create(ComponentKind.GROUND.value)
            ground_ref = ground.terminals[0]
            ground_ref.net_label = ir.ground_net_name
            ground_terminals.append(ground_ref)
            logger.debug(f"Tied net '{ir.ground_net_name}' to implicit ground '{ground.instance_id}'.")

        for net_name, terminals in net_terminals.items():
            if len(terminals) > 1:
                netlist.connect(*terminals)
            else:
                logger.debug(f"Net '{net_name}' has a single terminal ({terminals[0].fqn}).")
        return netlist
