"""
Load named query templates from the configured SQL directory.

Lookup goes through jinja2's FileSystemLoader: names are split on ``/`` and
any ``..`` segment is refused, so a query name cannot escape the directory.
Sources are cached and re-read when the file's mtime changes.
"""

import logging
import os
import threading
from collections.abc import Callable

from jinja2 import Environment, FileSystemLoader
from jinja2 import TemplateNotFound as _JinjaTemplateNotFound

from pgscope.core.errors import NoTemplateDirectoryError, TemplateNotFoundError
from pgscope.engines.sql.safety import check_sql_template_safety

_log = logging.getLogger(__name__)


class NamedQueryLoader:
    """Reads ``<sql_path>/<name>.<extension>`` files."""

    def __init__(self, sql_path: str | os.PathLike[str] | None, extension: str = "sql") -> None:
        self._sql_path = os.fspath(sql_path) if sql_path is not None else None
        self._extension = extension.lstrip(".")
        self._env: Environment | None = None
        self._cache: dict[str, tuple[str, Callable[[], bool] | None]] = {}
        self._lock = threading.Lock()
        if self._sql_path is not None:
            self._env = Environment(loader=FileSystemLoader(self._sql_path, encoding="utf-8"))

    @property
    def sql_path(self) -> str | None:
        return self._sql_path

    def filename(self, name: str) -> str:
        return f"{name}.{self._extension}"

    def load(self, name: str) -> str:
        """Return the template source for query *name*."""
        if self._env is None or self._env.loader is None:
            _log.debug("named_query(%s) called without sql_path", name)
            raise NoTemplateDirectoryError()

        filename = self.filename(name)
        with self._lock:
            cached = self._cache.get(filename)
        if cached is not None:
            source, uptodate = cached
            if uptodate is not None and uptodate():
                return source

        try:
            source, path, uptodate = self._env.loader.get_source(self._env, filename)
        except (_JinjaTemplateNotFound, OSError, UnicodeDecodeError) as e:
            raise TemplateNotFoundError(name, os.path.join(self._sql_path, filename)) from e

        _log.debug("Loaded named query %s from %s", name, path)
        for warning in check_sql_template_safety(source):
            _log.debug("%s line %d: %s", path, warning["line"], warning["message"])
        with self._lock:
            self._cache[filename] = (source, uptodate)
        return source
