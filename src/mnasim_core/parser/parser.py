# src/mnasim_core/parser/parser.py
import logging
import re
import string
from pathlib import Path
from typing import Any, Dict, List, Union

import cerberus
import yaml

from .raw_data import ParsedCircuitNode, ParsedComponentData
from .exceptions import ParsingError, SchemaValidationError

logger = logging.getLogger(__name__)

# A valid identifier for component ids, types, port and net names: no '.' or '-',
# so that 'R1.left' is always unambiguous.
ID_REGEX = r"^[a-zA-Z_][a-zA-Z0-9_]*$"
ALLOWED_ID_CHARS = set(string.ascii_letters + string.digits + "_")


class EnhancedValidator(cerberus.Validator):
    """Cerberus validator with the netlist's naming and uniqueness rules."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['id_regex'] = {'schema': {'type': 'boolean'}}
        self.rules['unique_elements_by_key'] = {'schema': {'type': 'string'}}
        self.rules['required_keys_by_type'] = {'type': 'dict'}

    def _validate_id_regex(self, constraint: bool, field: str, value: Any):
        if not constraint:
            return
        if not isinstance(value, str):
            self._error(field, "must be a string to be validated by id_regex.")
            return

        if not re.match(ID_REGEX, value):
            invalid_chars = sorted(set(value) - ALLOWED_ID_CHARS)
            message = (
                f"Identifier '{value}' is invalid. Identifiers must start with a letter or underscore, "
                "and can only contain letters, numbers, and underscores. The dot '.' and hyphen '-' characters are forbidden. "
                f"This identifier contains the following forbidden character(s): {invalid_chars}"
            )
            self._error(field, message)

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen_keys = set()
        duplicates = []
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is not None:
                if item_key in seen_keys:
                    duplicates.append(item_key)
                else:
                    seen_keys.add(item_key)

        if duplicates:
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {sorted(set(duplicates))}")

    def _validate_required_keys_by_type(self, keys_by_type: Dict[str, List[str]], field: str, value: Dict):
        """
        Validates that a mapping carries the keys its 'type' entry requires.
        The rule's arguments are validated against this schema:
        {'type': 'dict'}
        """
        if not isinstance(value, dict):
            return
        required = keys_by_type.get(str(value.get("type", "")).lower(), [])
        missing = [key for key in required if value.get(key) is None]
        if missing:
            self._error(field, f"Analysis type '{value.get('type')}' requires key(s): {missing}")


class NetlistParser:
    """
    Loads and validates one YAML netlist file into a ParsedCircuitNode.

    The parser checks structure only (types, identifiers, uniqueness, required
    keys). Whether a component type exists, whether its ports and parameters are
    declared and whether parameter values make sense is left to the builder.
    """
    _id_rule = {"type": "string", "required": True, "empty": False, "id_regex": True}
    _net_name_rule = {"type": "string", "empty": False, "id_regex": True}
    _param_key_rule = {"type": "string", "empty": False, "id_regex": True}
    _quantity_rule = {"type": ["string", "number"]}

    _component_schema = {
        "type": {"type": "string", "required": True, "id_regex": True},
        "id": _id_rule,
        "ports": {"type": "dict", "required": True, "minlength": 1, "keysrules": {"type": "string", "id_regex": True}, "valuesrules": _net_name_rule},
        "parameters": {"type": "dict", "required": False, "keysrules": _param_key_rule, "valuesrules": {"type": ["string", "number", "boolean"]}},
    }

    _schema = {
        "circuit_name": {"type": "string", "required": False, "id_regex": True},
        "ground_net": {"type": "string", "required": False, "id_regex": True, "default": "gnd"},
        "components": {"type": "list", "required": True, "minlength": 1, "unique_elements_by_key": "id", "schema": {"type": "dict", "schema": _component_schema}},
        "analysis": {
            "type": "dict", "required": False,
            "required_keys_by_type": {"ac": ["frequency"], "transient": ["end_time", "time_step"]},
            "schema": {
                "type": {"type": "string", "required": True, "allowed": ["dc", "ac", "transient", "DC", "AC", "TRANSIENT"]},
                "frequency": _quantity_rule,
                "end_time": _quantity_rule,
                "time_step": _quantity_rule,
                "tolerance": _quantity_rule,
                "max_iterations": {"type": "integer", "min": 1},
            },
        },
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.debug("NetlistParser initialized with strict structural validation rules.")

    def parse(self, yaml_path: Union[str, Path]) -> ParsedCircuitNode:
        """Parses one netlist file and returns its IR."""
        resolved_path = Path(yaml_path).resolve()
        logger.info(f"Parsing netlist file: {resolved_path}")

        yaml_content = self._load_yaml(resolved_path)
        try:
            is_valid = self._validator.validate(yaml_content)
        except cerberus.SchemaError as e:
            logger.error(f"The netlist schema itself was rejected by cerberus: {e}")
            raise SchemaValidationError({"schema": [f"Invalid validation schema: {e}"]}, resolved_path) from e
        if not is_valid:
            raise SchemaValidationError(self._validator.errors, resolved_path)
        validated_data = self._validator.document

        components = [
            ParsedComponentData(
                instance_id=raw["id"],
                component_type=raw["type"],
                raw_ports_dict=dict(raw["ports"]),
                raw_parameters_dict=dict(raw.get("parameters", {})),
                source_yaml_path=resolved_path,
            )
            for raw in validated_data["components"]
        ]
        logger.debug(f"Parsed {len(components)} component entries from {resolved_path.name}.")

        return ParsedCircuitNode(
            circuit_name=validated_data.get("circuit_name", resolved_path.stem),
            ground_net_name=validated_data["ground_net"],
            source_yaml_path=resolved_path,
            components=components,
            raw_analysis_config=validated_data.get("analysis"),
        )

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        """Loads and performs basic sanity checks on a YAML file."""
        if not source.is_file():
            raise ParsingError(details=f"Netlist file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except PermissionError as e:
            raise ParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
        if content is None:
            raise ParsingError(details="The YAML file is empty or contains no valid content.", file_path=source)
        if not isinstance(content, dict):
            raise ParsingError(details="The root of the YAML file must be a dictionary (mapping).", file_path=source)
        return content
