"""
SQL template engine with Jinja2.

Renders ``{{ name }}`` placeholders (plus filters, ``{% if %}``, ``{% for %}``
and ``{% where %}``) against substitution values. Every undeclared variable
must be supplied: a missing one raises UnresolvedTemplateError instead of
rendering as an empty string.

Compiled ``Template`` objects are cached in an LRU dict keyed by escape mode
and template source, so expanding one template over many data rows parses it
only once.
"""

import hashlib
import threading
from collections import OrderedDict
from typing import Any

from jinja2 import (
    Environment,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateSyntaxError,
    UndefinedError,
    meta,
)

from querydispatch.core.exceptions import (
    MalformedQueryError,
    QueryError,
    UnresolvedTemplateError,
)
from querydispatch.engines.sql.extensions import SQL_EXTENSIONS
from querydispatch.engines.sql.filters import SQL_FILTERS, raw_finalize, sql_finalize

_ENVS: dict[bool, Environment] = {}
_env_lock = threading.Lock()

_CACHE_MAX_SIZE = 512
_template_cache: OrderedDict[str, Template] = OrderedDict()
_cache_lock = threading.Lock()


def _get_sql_env(escape: bool) -> Environment:
    """Shared Environment per escape mode (filters, extensions, finalize)."""
    with _env_lock:
        env = _ENVS.get(escape)
        if env is None:
            env = Environment(
                autoescape=False,
                extensions=SQL_EXTENSIONS,
                finalize=sql_finalize if escape else raw_finalize,
                undefined=StrictUndefined,
                keep_trailing_newline=True,
            )
            env.filters.update(SQL_FILTERS)
            _ENVS[escape] = env
    return env


def _compile_cached(env: Environment, source: str, escape: bool) -> Template:
    """Return a compiled ``Template`` from cache or compile & cache it."""
    digest = hashlib.md5(source.encode(), usedforsecurity=False).hexdigest()
    key = f"{int(escape)}:{digest}"
    with _cache_lock:
        tpl = _template_cache.get(key)
        if tpl is not None:
            _template_cache.move_to_end(key)
            return tpl
    tpl = env.from_string(source)
    with _cache_lock:
        _template_cache[key] = tpl
        if len(_template_cache) > _CACHE_MAX_SIZE:
            _template_cache.popitem(last=False)
    return tpl


def _preview(template: str) -> str:
    return template[:500] + "..." if len(template) > 500 else template


class SQLTemplateEngine:
    """Renders Jinja2 SQL templates and parses parameter names."""

    def __init__(self, escape: bool = False) -> None:
        self.escape = escape

    def render(self, template: str, params: dict[str, Any]) -> str:
        """Render *template* with *params* to a final SQL string."""
        env = _get_sql_env(self.escape)
        try:
            missing = set(self.parse_parameters(template)) - set(params)
        except TemplateSyntaxError as e:
            raise MalformedQueryError(
                f"SQL template syntax error: {e}. Template preview:\n{_preview(template)}",
                fragment=template,
            ) from e
        if missing:
            raise UnresolvedTemplateError(sorted(missing), template=template)
        try:
            return _compile_cached(env, template, self.escape).render(**params)
        except UndefinedError as e:
            raise UnresolvedTemplateError([str(e)], template=template) from e
        except TemplateError as e:
            raise QueryError(
                f"SQL template render error: {e}. "
                f"Params: {sorted(params)}. Template preview:\n{_preview(template)}"
            ) from e

    def parse_parameters(self, template: str) -> list[str]:
        """Extract variable names used in ``{{ }}`` and ``{% %}`` (undeclared)."""
        ast = _get_sql_env(self.escape).parse(template)
        return sorted(meta.find_undeclared_variables(ast))
