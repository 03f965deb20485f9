# src/mnasim_core/validation/validator.py
import logging
from typing import List, Optional, Set

from ..analysis.topology import TopologyAnalyzer
from ..components.base import COMPONENT_REGISTRY
from ..components.base_enums import ComponentKind
from ..netlist.data_structures import Netlist, Terminal
from ..parser.raw_data import ParsedCircuitNode
from ..simulation.nets import NetAssignment, NetResolver
from .issue_codes import ValidationIssueCode
from .issues import ValidationIssue, ValidationIssueLevel

logger = logging.getLogger(__name__)


class CircuitValidator:
    """
    Checks a netlist against the preconditions of every analysis.

    Errors (any of them stops the analysis before a matrix is built):
    - the circuit has no components,
    - no Ground component is present,
    - no VoltageSource or ThreePhaseSource is present,
    - a user-visible terminal is not the endpoint of any complete wire.
      Hidden terminals, ports the component declares optional and the terminal of
      a Ground marker are exempt.

    Warnings:
    - a net has no path to ground through any component.
    """

    def __init__(self, netlist: Netlist, assignment: Optional[NetAssignment] = None):
        self.netlist = netlist
        self.assignment = assignment
        self.issues: List[ValidationIssue] = []

    def validate(self) -> List[ValidationIssue]:
        """
        Runs every check and returns all issues found (errors, warnings and info).
        The caller decides whether ERROR-level issues stop the analysis.
        """
        self.issues = []
        name = self.netlist.name
        logger.debug(f"Validating circuit '{name}'...")

        if self.netlist.is_empty:
            self._add_issue(ValidationIssueLevel.ERROR, ValidationIssueCode.CIRCUIT_EMPTY, circuit_name=name)
            return self.issues

        if self.assignment is None:
            self.assignment = NetResolver().resolve(self.netlist)

        if not self.assignment.has_ground:
            self._add_issue(ValidationIssueLevel.ERROR, ValidationIssueCode.GND_MISSING, circuit_name=name)
        if not any(component.is_source for component in self.netlist):
            self._add_issue(ValidationIssueLevel.ERROR, ValidationIssueCode.SRC_MISSING, circuit_name=name)

        self._check_unconnected_terminals()
        if self.assignment.has_ground:
            self._check_floating_nets()

        errors = sum(1 for i in self.issues if i.level == ValidationIssueLevel.ERROR)
        warnings = sum(1 for i in self.issues if i.level == ValidationIssueLevel.WARNING)
        if self.issues:
            logger.info(f"Validation of '{name}' found {errors} error(s) and {warnings} warning(s).")
        return self.issues

    @staticmethod
    def validate_definition(circuit_node: ParsedCircuitNode) -> List[ValidationIssue]:
        """
        Checks parsed component entries against the component registry: known
        types, declared ports and declared parameters. Used by the NetlistBuilder
        before any component is instantiated.
        """
        issues: List[ValidationIssue] = []

        def add(code: ValidationIssueCode, **kwargs):
            kwargs.setdefault('source_yaml_path', str(circuit_node.source_yaml_path))
            issues.append(ValidationIssue(
                level=ValidationIssueLevel.ERROR, code=code.code, message=code.format_message(**kwargs),
                component_fqn=kwargs.get('component_fqn'), details=kwargs
            ))

        for comp in circuit_node.components:
            cls = COMPONENT_REGISTRY.get(comp.component_type)
            if cls is None:
                add(ValidationIssueCode.COMP_TYPE_UNKNOWN, component_fqn=comp.instance_id,
                    component_type=comp.component_type, available_types=sorted(COMPONENT_REGISTRY))
                continue
            declared_ports = cls.declare_ports()
            extra_ports = sorted(set(comp.raw_ports_dict) - set(declared_ports))
            if extra_ports:
                add(ValidationIssueCode.COMP_PORT_UNDECLARED, component_fqn=comp.instance_id,
                    extra_ports=extra_ports, declared_ports=declared_ports)
            declared_params = sorted(cls.declare_parameters())
            unknown_params = sorted(set(comp.raw_parameters_dict) - set(declared_params))
            if unknown_params:
                add(ValidationIssueCode.PARAM_UNKNOWN, component_fqn=comp.instance_id,
                    parameter_names=unknown_params, component_type=comp.component_type,
                    declared_params=declared_params)
        return issues

    def _add_issue(self, level: ValidationIssueLevel, code_enum: ValidationIssueCode, **kwargs):
        message = code_enum.format_message(**kwargs)
        self.issues.append(ValidationIssue(
            level=level, code=code_enum.code, message=message,
            component_fqn=kwargs.get('component_fqn'), details=kwargs
        ))

    def _check_unconnected_terminals(self):
        wired: Set[Terminal] = self.netlist.connected_terminals()
        for component in self.netlist:
            if component.kind is ComponentKind.GROUND:
                continue
            for terminal in component.terminals:
                if terminal.hidden or terminal.optional or terminal in wired:
                    continue
                self._add_issue(
                    ValidationIssueLevel.ERROR, ValidationIssueCode.TERM_UNCONNECTED,
                    terminal_fqn=terminal.fqn, component_fqn=component.instance_id
                )

    def _check_floating_nets(self):
        topology = TopologyAnalyzer(self.netlist, self.assignment).analyze()
        for net in self.assignment.nets:
            if net.net_id in topology.grounded_nets:
                continue
            terminals = [t.fqn for t in net.terminals if not t.hidden]
            if not terminals:
                continue
            self._add_issue(
                ValidationIssueLevel.WARNING, ValidationIssueCode.NET_FLOATING,
                net_name=net.name, terminals=terminals
            )
