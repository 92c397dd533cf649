"""Handler options: mapping, YAML file and environment overrides."""

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from convergecheck.errors import ConfigError

DEFAULT_PATH = "./test/test_*.py"

ENV_PREFIX = "CONVERGECHECK_"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class HandlerOptions:
    """Options recognized by the verification handler.

    ``path`` globs the test suite files, ``filter`` restricts test names
    (pytest ``-k``), ``verbose`` controls report verbosity, ``seed`` fixes
    the execution order, ``managed`` logs failures instead of failing the run.
    """

    path: str = DEFAULT_PATH
    filter: str | None = None
    verbose: bool = False
    seed: int | None = None
    managed: bool = False

    @classmethod
    def keys(cls):
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, mapping):
        errors = validate_options(mapping)
        if errors:
            raise ConfigError(errors)
        return cls(**{k: v for k, v in mapping.items() if v is not None})


def validate_options(mapping):
    """Validate an options mapping. Returns list of errors."""
    errors = []
    if not isinstance(mapping, dict):
        return [f"options must be a mapping, got {type(mapping).__name__}"]
    for key in sorted(set(mapping) - set(HandlerOptions.keys())):
        errors.append(f"Unknown option: {key}")
    path = mapping.get("path")
    if path is not None and (not isinstance(path, str) or not path):
        errors.append("path must be a non-empty glob string")
    flt = mapping.get("filter")
    if flt is not None and not isinstance(flt, str):
        errors.append(f"filter must be a string, got {type(flt).__name__}")
    for key in ("verbose", "managed"):
        value = mapping.get(key)
        if value is not None and not isinstance(value, bool):
            errors.append(f"{key} must be a boolean, got {value!r}")
    seed = mapping.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        errors.append(f"seed must be an integer, got {seed!r}")
    return errors


def _parse_bool(key, value):
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError([f"{key} must be a boolean, got {value!r}"])


def _parse_int(key, value):
    try:
        return int(value)
    except ValueError:
        raise ConfigError([f"{key} must be an integer, got {value!r}"]) from None


def env_overrides(env):
    """Extract option overrides from CONVERGECHECK_* variables."""
    overrides = {}
    for key in HandlerOptions.keys():
        var = ENV_PREFIX + key.upper()
        if var not in env:
            continue
        raw = env[var]
        if key in ("verbose", "managed"):
            overrides[key] = _parse_bool(var, raw)
        elif key == "seed":
            overrides[key] = _parse_int(var, raw) if raw.strip() else None
        else:
            overrides[key] = raw or None
    return overrides


def load_options(config_path=None, env=None, overrides=None):
    """Build HandlerOptions from a YAML file, the environment and overrides.

    Later sources win: file < environment < explicit overrides. The file
    may hold the options at top level or under a ``verify:`` key.
    """
    data = {}
    if config_path is not None:
        p = Path(config_path)
        try:
            with open(p) as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError([f"{p}: invalid YAML: {e}"]) from None
        if isinstance(loaded, dict) and isinstance(loaded.get("verify"), dict):
            loaded = loaded["verify"]
        if not isinstance(loaded, dict):
            raise ConfigError([f"{p}: options must be a mapping"])
        data.update(loaded)
    data.update(env_overrides(os.environ if env is None else env))
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return HandlerOptions.from_mapping(data)
