"""
Find placeholders in a query template.

A placeholder is ``%<sigil>:<name>`` with sigil I (identifier), L (literal)
or s (raw) and an alphabetic name.
"""

import re

PLACEHOLDER = re.compile(r"%([ILs]):([A-Za-z]+)")


def find_placeholders(template: str) -> list[tuple[str, str]]:
    """Return ``(sigil, name)`` for every placeholder, in order, duplicates kept."""
    return PLACEHOLDER.findall(template)


def parse_parameters(template: str) -> list[str]:
    """
    Names the template requires, sorted and de-duplicated.

    These are exactly the keys that must be present in params for render().
    """
    return sorted({name for _, name in find_placeholders(template)})
