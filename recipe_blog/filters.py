"""In-memory filtering of the recipe list for the public blog page.

Recipes are anything with ``category``, ``difficulty`` and ``tags`` (a list
of tag names) attributes, typically :class:`recipe_blog.schemas.Recipe`.
"""
import math
from typing import NamedTuple, Optional


def difficulty_bucket(rating) -> Optional[int]:
    """Round a (possibly fractional) rating half-up into the 1..5 range."""
    if rating is None:
        return None
    return min(5, max(1, int(math.floor(float(rating) + 0.5))))


def has_tag(recipe, tag) -> bool:
    return tag in (recipe.tags or [])


def filter_recipes(recipes, category=None, tag=None, difficulty=None):
    """Return the recipes matching every given criterion, in input order."""
    filtered = list(recipes)
    if category:
        filtered = [r for r in filtered if r.category == category]
    if tag:
        filtered = [r for r in filtered if has_tag(r, tag)]
    if difficulty is not None:
        bucket = difficulty_bucket(difficulty)
        filtered = [r for r in filtered if difficulty_bucket(r.difficulty) == bucket]
    return filtered


def category_counts(recipes):
    counts = {}
    for r in recipes:
        if r.category:
            counts[r.category] = counts.get(r.category, 0) + 1
    return [{"name": name, "count": count} for name, count in counts.items()]


def tag_counts(recipes):
    counts = {}
    for r in recipes:
        for name in r.tags or []:
            counts[name] = counts.get(name, 0) + 1
    return [{"name": name, "count": count} for name, count in counts.items()]


class FilterState(NamedTuple):
    """Current blog filter selection. Each change returns a new state."""

    category: Optional[str] = None
    tag: Optional[str] = None
    difficulty: Optional[int] = None

    def select_category(self, category):
        return self._replace(category=category)

    def toggle_tag(self, tag):
        # Selecting the active tag again deselects it
        return self._replace(tag=None if self.tag == tag else tag)

    def select_difficulty(self, difficulty):
        return self._replace(difficulty=difficulty_bucket(difficulty))

    def clear(self):
        return FilterState()

    @property
    def active(self) -> bool:
        return any(v is not None for v in self)

    def apply(self, recipes):
        return filter_recipes(
            recipes, category=self.category, tag=self.tag, difficulty=self.difficulty
        )
