"""Run-scope rule: only test cases for recipes that actually ran execute."""

from convergecheck.run_state import normalize_recipe

RECIPE_MARKER = "recipe"


def recipe_for(item):
    """Return the recipe a collected test item verifies, or None.

    A ``@pytest.mark.recipe("cookbook::recipe")`` marker wins over the
    ``recipe`` attribute of the test class.
    """
    marker = item.get_closest_marker(RECIPE_MARKER)
    if marker is not None and marker.args:
        return normalize_recipe(marker.args[0])
    cls = getattr(item, "cls", None)
    recipe = getattr(cls, "recipe", None) if cls is not None else None
    if recipe:
        return normalize_recipe(recipe)
    return None


def in_scope(recipe, seen_recipes) -> bool:
    """True if ``recipe`` was executed in this run."""
    if recipe is None:
        return False
    return normalize_recipe(recipe) in seen_recipes


def partition(items, seen_recipes):
    """Split items into (selected, deselected), keeping collection order."""
    selected, deselected = [], []
    for item in items:
        if in_scope(recipe_for(item), seen_recipes):
            selected.append(item)
        else:
            deselected.append(item)
    return selected, deselected
