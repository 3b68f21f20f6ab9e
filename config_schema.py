"""
TRTS Configuration Schema - File Loading and Validation for TRTSConfig

Loads JSON/YAML configuration files into a frozen trts.TRTSConfig. This is
the only place configuration text is parsed; the engine itself receives a
fully populated TRTSConfig and never re-reads it.

Consumed by:
- trts_cli.py (simulate / analyze / validate-config)
- self_refine.py (saving the best candidate)

Design Principles:
- Can't create invalid config: unknown keys, bad enum codes and malformed
  rationals raise ValueError naming the offending key
- Legacy compatible: enum values may be integer codes or names
- Immutable: frozen after load
"""

from __future__ import annotations

import json
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import yaml
from jsonschema import Draft202012Validator

from receipts import emit_receipt
from trts.constants import (
    UNSUPPORTED_VARIANTS,
    EngineMode,
    KoppaMode,
    KoppaTrigger,
    Mt10Behavior,
    PrimeTarget,
    PsiMode,
    RatioTriggerMode,
    SignFlipMode,
    TrackMode,
)
from trts.rational import Rational
from trts.types_config import TRTSConfig


__all__ = [
    'load',
    'from_dict',
    'to_dict',
    'save',
    'validate',
    'JSON_SCHEMA',
]


# =============================================================================
# Key Tables
# =============================================================================

# file key -> (TRTSConfig field, enum type)
_ENUM_KEYS: Dict[str, tuple] = {
    'engine_mode': ('engine_mode', EngineMode),
    'upsilon_track': ('upsilon_track', TrackMode),
    'beta_track': ('beta_track', TrackMode),
    'psi_mode': ('psi_mode', PsiMode),
    'koppa_mode': ('koppa_mode', KoppaMode),
    'koppa_trigger': ('koppa_trigger', KoppaTrigger),
    'prime_target': ('prime_target', PrimeTarget),
    'mt10_behavior': ('mt10_behavior', Mt10Behavior),
    'sign_flip_mode': ('sign_flip_mode', SignFlipMode),
    'ratio_trigger_mode': ('ratio_trigger_mode', RatioTriggerMode),
}

# file key -> TRTSConfig field
_BOOL_KEYS: Dict[str, str] = {
    'dual_track_symmetry': 'dual_track',
    'triple_psi': 'triple_psi',
    'multi_level_koppa': 'multi_level_koppa',
    'asymmetric_cascade': 'asymmetric_cascade',
    'conditional_triple_psi': 'conditional_triple_psi',
    'koppa_gated_engine': 'koppa_gated_engine',
    'delta_cross_propagation': 'delta_cross_propagation',
    'delta_koppa_offset': 'delta_koppa_offset',
    'ratio_threshold_psi': 'ratio_threshold_psi',
    'stack_depth_modes': 'stack_depth_modes',
    'epsilon_phi_triangle': 'epsilon_phi_triangle',
    'modular_wrap': 'modular_wrap',
    'psi_strength_parameter': 'psi_strength',
    'ratio_custom_range': 'ratio_custom_range',
    'twin_prime_trigger': 'twin_prime_trigger',
    'fibonacci_trigger': 'fibonacci_trigger',
    'perfect_power_trigger': 'perfect_power_trigger',
}

_RATIONAL_KEYS: Dict[str, str] = {
    'upsilon_seed': 'upsilon_seed',
    'beta_seed': 'beta_seed',
    'koppa_seed': 'koppa_seed',
    'ratio_custom_lower': 'ratio_custom_lower',
    'ratio_custom_upper': 'ratio_custom_upper',
}

# Legacy toggles accepted only when false
_UNSUPPORTED_BOOL_KEYS = ('ratio_snapshot_logging', 'feedback_oscillator', 'fibonacci_gate')

# Legacy integer codes beyond FORCED_PSI (forced_engine, forced_koppa)
_UNSUPPORTED_MT10_CODES = {2: 'forced_engine', 3: 'forced_koppa'}


# =============================================================================
# JSON Schema Definition (Draft 2020-12)
# =============================================================================

_RATIONAL_PATTERN = r"^\s*[+-]?\d+\s*/\s*[+-]?\d+\s*$"

JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "TRTSConfig",
    "description": "TRTS propagation engine configuration",
    "type": "object",
    "properties": {
        "scenario_name": {"type": "string", "minLength": 1},
        "tick_count": {
            "type": "integer",
            "description": "Number of ticks (11 microticks each)",
            "minimum": 1
        },
        "koppa_wrap_threshold": {"type": "integer", "minimum": 0},
        "modulus_bound": {
            "description": "Numerator wrap bound, 0 disables",
            "oneOf": [
                {"type": "integer", "minimum": 0},
                {"type": "string", "pattern": r"^\s*\d+\s*$"}
            ]
        },
        **{key: {"type": ["integer", "string"]} for key in _ENUM_KEYS},
        **{key: {"type": "boolean"} for key in _BOOL_KEYS},
        **{key: {"type": "boolean"} for key in _UNSUPPORTED_BOOL_KEYS},
        **{key: {"type": "string", "pattern": _RATIONAL_PATTERN} for key in _RATIONAL_KEYS},
    },
    "additionalProperties": False
}

# Compiled once at import
Draft202012Validator.check_schema(JSON_SCHEMA)
_COMPILED_VALIDATOR = Draft202012Validator(JSON_SCHEMA)


# =============================================================================
# Validation
# =============================================================================

def validate(data: Any) -> List[str]:
    """
    Structural validation of raw config data.

    Returns:
        List of error strings, each prefixed with the offending key
    """
    if not isinstance(data, dict):
        return [f"config root must be a mapping, got {type(data).__name__}"]

    errors = []
    for err in sorted(_COMPILED_VALIDATOR.iter_errors(data), key=lambda e: list(e.path)):
        where = ".".join(str(p) for p in err.path) or "config"
        errors.append(f"{where}: {err.message}")

    for key in _UNSUPPORTED_BOOL_KEYS:
        if data.get(key) is True:
            errors.append(f"{key}: variant is not supported")

    return errors


def _parse_enum(key: str, value: Any, enum_type: Type[Enum]) -> Enum:
    members = list(enum_type)

    if isinstance(value, int):
        if enum_type is Mt10Behavior and value in _UNSUPPORTED_MT10_CODES:
            raise ValueError(f"{key}: variant '{_UNSUPPORTED_MT10_CODES[value]}' is not supported")
        if not 0 <= value < len(members):
            raise ValueError(f"{key}: code {value} out of range 0..{len(members) - 1}")
        return members[value]

    name = value.strip().lower()
    if name in UNSUPPORTED_VARIANTS:
        raise ValueError(f"{key}: variant '{value}' is not supported")
    for member in members:
        if name in (member.name.lower(), member.value.lower()):
            return member
    choices = ", ".join(m.name.lower() for m in members)
    raise ValueError(f"{key}: unknown value '{value}' (expected one of: {choices})")


# =============================================================================
# Conversion
# =============================================================================

def from_dict(data: Dict[str, Any], base: Optional[TRTSConfig] = None) -> TRTSConfig:
    """
    Build a TRTSConfig from file-format keys.

    Args:
        data: Mapping using the legacy file keys (tick_count, psi_mode, ...)
        base: Config supplying every value the mapping omits (default TRTSConfig())

    Returns:
        Frozen TRTSConfig

    Raises:
        ValueError: If validation fails
    """
    errors = validate(data)
    if errors:
        raise ValueError("Config validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    changes: Dict[str, Any] = {}

    for key, (field_name, enum_type) in _ENUM_KEYS.items():
        if key in data:
            changes[field_name] = _parse_enum(key, data[key], enum_type)

    for key, field_name in _BOOL_KEYS.items():
        if key in data:
            changes[field_name] = data[key]

    for key, field_name in _RATIONAL_KEYS.items():
        if key in data:
            try:
                changes[field_name] = Rational.parse(data[key])
            except ValueError as exc:
                raise ValueError(f"{key}: {exc}") from None

    if 'tick_count' in data:
        changes['ticks'] = int(data['tick_count'])
    if 'koppa_wrap_threshold' in data:
        changes['koppa_wrap_threshold'] = int(data['koppa_wrap_threshold'])
    if 'modulus_bound' in data:
        changes['modulus_bound'] = int(data['modulus_bound'])
    if 'scenario_name' in data:
        changes['scenario_name'] = data['scenario_name']

    return replace(base if base is not None else TRTSConfig(), **changes)


def to_dict(config: TRTSConfig) -> Dict[str, Any]:
    """
    Export as file-format dictionary.

    from_dict(to_dict(config)) == config.
    """
    data: Dict[str, Any] = {
        'scenario_name': config.scenario_name,
        'tick_count': config.ticks,
    }
    for key, (field_name, _) in _ENUM_KEYS.items():
        data[key] = getattr(config, field_name).name.lower()
    for key, field_name in _BOOL_KEYS.items():
        data[key] = getattr(config, field_name)
    for key, field_name in _RATIONAL_KEYS.items():
        data[key] = str(getattr(config, field_name))
    data['koppa_wrap_threshold'] = config.koppa_wrap_threshold
    data['modulus_bound'] = config.modulus_bound
    return data


# =============================================================================
# Files
# =============================================================================

def load(path: str, ledger: Optional[list] = None) -> TRTSConfig:
    """
    Load config from JSON/YAML file.

    Auto-validates on load (not separate step).

    Args:
        path: Path to config file (.json, .yaml or .yml)
        ledger: Optional list the trts_config_loaded receipt is appended to

    Returns:
        Validated, frozen TRTSConfig

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If the file cannot be parsed or validation fails
    """
    path_obj = Path(path)

    if not path_obj.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    content = path_obj.read_text()

    try:
        if path_obj.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"{path}: cannot parse config: {exc}") from None

    if data is None:
        data = {}

    config = from_dict(data)

    receipt = emit_receipt("trts_config_loaded", {
        "path": str(path_obj),
        "scenario": config.scenario_name,
        "ticks": config.ticks,
        "keys": sorted(data),
    })
    if ledger is not None:
        ledger.append(receipt)

    return config


def save(config: TRTSConfig, path: str) -> None:
    """
    Write config to file.

    Args:
        config: TRTSConfig to write
        path: File path to write to (.json or .yaml)
    """
    data = to_dict(config)
    path_obj = Path(path)

    if path_obj.suffix in ('.yaml', '.yml'):
        content = yaml.safe_dump(data, default_flow_style=False, sort_keys=True)
    else:
        content = json.dumps(data, indent=2, sort_keys=True)

    path_obj.write_text(content)
