"""Run status and live run context supplied by the convergence engine."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import yaml

from convergecheck.providers import PROVIDERS

logger = logging.getLogger("convergecheck.run_state")


class LocalRunContext:
    """Resolves declarations against the host this process runs on."""

    def __init__(self, providers=None):
        self.providers = dict(providers or PROVIDERS)

    def provider_for(self, declaration):
        return self.providers[declaration.kind](declaration)


def normalize_recipe(recipe):
    """Return ``cookbook::recipe``; a bare cookbook means its default recipe."""
    recipe = str(recipe).strip()
    if "::" not in recipe:
        return f"{recipe}::default"
    return recipe


def _recipe_list(value):
    """A single recipe name counts as a one-item list."""
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict) or not hasattr(value, "__iter__"):
        raise ValueError(f"recipes must be a list, got {type(value).__name__}")
    return list(value)


@dataclass(frozen=True)
class RunStatus:
    """What the engine knows about the convergence run that just finished.

    ``seen_recipes`` are the recipes actually executed; ``all_recipes`` the
    ones in the expanded run list. A recorded ``exception`` means the
    convergence failed.
    """

    run_context: object
    all_recipes: frozenset = frozenset()
    seen_recipes: frozenset = frozenset()
    node: MappingProxyType = field(
        default_factory=lambda: MappingProxyType({}),
    )
    exception: BaseException | None = None

    def __post_init__(self):
        object.__setattr__(
            self, "all_recipes",
            frozenset(normalize_recipe(r) for r in _recipe_list(self.all_recipes)),
        )
        object.__setattr__(
            self, "seen_recipes",
            frozenset(normalize_recipe(r) for r in _recipe_list(self.seen_recipes)),
        )
        if not isinstance(self.node, MappingProxyType):
            object.__setattr__(self, "node", MappingProxyType(dict(self.node)))

    @property
    def failed(self) -> bool:
        return self.exception is not None

    @property
    def success(self) -> bool:
        return not self.failed

    @classmethod
    def from_file(cls, path, run_context=None):
        """Load a run summary (YAML or JSON) written by the engine.

        Recognized keys: ``recipes``, ``seen_recipes`` (defaults to
        ``recipes``), ``node``, ``failed`` and ``error``.
        """
        p = Path(path)
        text = p.read_text()
        if p.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
        if not isinstance(data, dict):
            raise ValueError(f"{p}: run summary must be a mapping")

        recipes = _recipe_list(data.get("recipes"))
        seen = data.get("seen_recipes")
        seen = recipes if seen is None else _recipe_list(seen)
        exception = None
        if data.get("failed"):
            exception = RuntimeError(data.get("error") or "convergence failed")
        logger.debug(
            "Loaded run summary %s: %d recipe(s), %d seen, failed=%s",
            p, len(recipes), len(seen), exception is not None,
        )
        return cls(
            run_context=run_context or LocalRunContext(),
            all_recipes=frozenset(recipes),
            seen_recipes=frozenset(seen),
            node=data.get("node") or {},
            exception=exception,
        )
