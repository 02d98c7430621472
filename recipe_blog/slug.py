import re

# Anything outside ASCII lowercase, digits and Hangul syllables
_SEPARATORS = re.compile(r"[^a-z0-9가-힣]+")


def slugify(title: str) -> str:
    """Derive the public URL segment for a recipe title.

    Runs of disallowed characters collapse to a single hyphen and leading or
    trailing hyphens are dropped, so ``slugify(slugify(x)) == slugify(x)``.
    The result is not guaranteed to be unique.
    """
    if not title:
        return ""
    return _SEPARATORS.sub("-", title.lower()).strip("-")
