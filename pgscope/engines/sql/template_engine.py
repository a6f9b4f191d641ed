"""
SQL template engine for named queries.

Rendering happens in two steps. The template is first compiled: each
``%I:name`` / ``%L:name`` / ``%s:name`` token becomes its bare positional
marker and the ``(sigil, name)`` occurrences are recorded. The values are
then looked up in occurrence order and handed to ``format_sql``, which owns
all escaping. A name may repeat and may appear under different sigils; each
occurrence is escaped on its own.

Performance: compiled templates are cached in an LRU dict keyed by template
source hash, so named queries run repeatedly skip the scan.
"""

import hashlib
import itertools
import logging
import re
import threading
from collections import OrderedDict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from pgscope.core.errors import InvalidParameterError, MissingParameterError
from pgscope.engines.sql.filters import format_sql
from pgscope.engines.sql.parser import find_placeholders, parse_parameters

_log = logging.getLogger(__name__)

ParamValue = Union[str, int, float, Decimal, None]

# A placeholder token, or any other percent sign (which must survive format_sql)
_FORMAT_TOKEN = re.compile(r"%([ILs]):[A-Za-z]+|%")

_CACHE_MAX_SIZE = 512


class ParameterBag(Mapping[str, ParamValue]):
    """
    Immutable name -> value mapping for template rendering.

    Values must be text, numbers or None. Built from a mapping, an iterable of
    ``(key, value)`` pairs and/or keyword arguments; a key given twice is
    rejected.
    """

    __slots__ = ("_values",)

    def __init__(
        self,
        items: Mapping[str, ParamValue] | Iterable[tuple[str, ParamValue]] | None = None,
        /,
        **kwargs: ParamValue,
    ) -> None:
        pairs = items.items() if isinstance(items, Mapping) else (items or ())
        values: dict[str, ParamValue] = {}
        for key, value in itertools.chain(pairs, kwargs.items()):
            if not isinstance(key, str):
                raise InvalidParameterError(f"Parameter names must be strings, got {key!r}")
            if key in values:
                raise InvalidParameterError(f"Duplicate parameter {key!r}")
            values[key] = _check_value(key, value)
        self._values = values

    def __getitem__(self, key: str) -> ParamValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterBag({self._values!r})"


def _check_value(key: str, value: object) -> ParamValue:
    # bool is an int subclass but not a valid SQL text/number value here
    if value is None or (isinstance(value, (str, int, float, Decimal)) and not isinstance(value, bool)):
        return value
    raise InvalidParameterError(
        f"Parameter {key!r} must be text, a number or None, got {type(value).__name__}"
    )


@dataclass(frozen=True)
class CompiledTemplate:
    source: str
    fmt: str
    placeholders: tuple[tuple[str, str], ...]

    @property
    def names(self) -> frozenset[str]:
        return frozenset(name for _, name in self.placeholders)


def compile_template(source: str) -> CompiledTemplate:
    """Classify placeholders and build the positional format string."""
    placeholders = tuple(find_placeholders(source))
    fmt = _FORMAT_TOKEN.sub(lambda m: "%" + m.group(1) if m.group(1) else "%%", source)
    return CompiledTemplate(source=source, fmt=fmt, placeholders=placeholders)


_template_cache: OrderedDict[str, CompiledTemplate] = OrderedDict()
_cache_lock = threading.Lock()


def _compile_cached(source: str) -> CompiledTemplate:
    """Return a compiled template from cache or compile & cache it."""
    key = hashlib.md5(source.encode(), usedforsecurity=False).hexdigest()
    with _cache_lock:
        tpl = _template_cache.get(key)
        if tpl is not None and tpl.source == source:
            _template_cache.move_to_end(key)
            return tpl
    tpl = compile_template(source)
    with _cache_lock:
        _template_cache[key] = tpl
        if len(_template_cache) > _CACHE_MAX_SIZE:
            _template_cache.popitem(last=False)
    return tpl


class SQLTemplateEngine:
    """Renders ``%I:`` / ``%L:`` / ``%s:`` SQL templates and parses parameter names."""

    def render(
        self,
        template: str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> str:
        """Render *template* with *params* to a final SQL string."""
        compiled = _compile_cached(template)
        if not compiled.placeholders:
            return template

        values = params if params is not None else {}
        missing = [name for name in compiled.names if name not in values]
        if missing:
            raise MissingParameterError(missing, template)

        # only referenced values are checked; extra keys are ignored
        args = [_check_value(name, values[name]) for _, name in compiled.placeholders]
        _log.debug("Rendering query template: %s with params %s", template, sorted(compiled.names))
        return format_sql(compiled.fmt, *args)

    def parse_parameters(self, template: str) -> list[str]:
        return parse_parameters(template)


def render(template: str, params: Mapping[str, ParamValue] | None = None) -> str:
    return SQLTemplateEngine().render(template, params)
