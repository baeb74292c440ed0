"""
Custom Jinja2 tags for SQL templates.

{% where %} ... {% endwhere %}: conditions rendered inside the block are joined
under a single WHERE; a leading AND/OR is dropped and an empty block renders
nothing. Handy with optional filters:

    SELECT * FROM t {% where %}{% if a %} AND a = {{ a }}{% endif %}{% endwhere %};
"""

import re

from jinja2 import nodes
from jinja2.ext import Extension

_LEADING_CONJUNCTION = re.compile(r"^(AND|OR)\s+", re.IGNORECASE)


class WhereExtension(Extension):
    tags = {"where"}

    def parse(self, parser) -> nodes.CallBlock:
        lineno = next(parser.stream).lineno
        body = parser.parse_statements(("name:endwhere",), drop_needle=True)
        return nodes.CallBlock(
            self.call_method("_render_where", [], [], []), [], [], body
        ).set_lineno(lineno)

    def _render_where(self, caller) -> str:
        conditions = _LEADING_CONJUNCTION.sub("", (caller() or "").strip()).strip()
        return f"WHERE {conditions}" if conditions else ""


SQL_EXTENSIONS: list[type[Extension]] = [WhereExtension]
