"""
Turn raw SQL text into ``;``-terminated statement fragments.

- strip_comments: drop ``-- ...`` / ``# ...`` line comments and ``/* ... */``
  block comments, plus the lines they leave empty.
- split_statements: split on ``;`` outside quoted literals and re-append the
  terminator to every non-blank fragment.

Jinja delimiters (``{{ }}``, ``{% %}``, ``{# #}``) are opaque to both: their
content is never read as a comment marker or a statement terminator.
"""

import re

_BLOCK_COMMENT = re.compile(r"\n?/\*.*?\*/", re.DOTALL)
_JINJA_CLOSE = {"{{": "}}", "{%": "%}", "{#": "#}"}


def _jinja_end(sql: str, i: int) -> int:
    """Index just past the Jinja tag that opens at ``i`` (end of text if unclosed)."""
    end = sql.find(_JINJA_CLOSE[sql[i : i + 2]], i + 2)
    return len(sql) if end == -1 else end + 2


def _strip_line_comments(sql: str) -> str:
    """
    Cut ``--`` and ``#`` comments up to the end of their line.

    Markers inside quoted literals (which end at the line break) or inside
    Jinja tags (which may span lines) are kept.
    """
    out: list[str] = []
    quote: str | None = None
    i = 0
    length = len(sql)
    while i < length:
        ch = sql[i]
        if ch == "\n":
            quote = None
        elif quote:
            if ch == quote:
                quote = None
        elif sql[i : i + 2] in _JINJA_CLOSE:
            end = _jinja_end(sql, i)
            out.append(sql[i:end])
            i = end
            continue
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == "#" or sql.startswith("--", i):
            end = sql.find("\n", i)
            i = length if end == -1 else end
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def strip_comments(sql: str) -> str:
    """
    Remove comments and the blank lines they leave behind.

    Line comments go first, then blank lines, then block comments, which may
    span several lines.
    """
    text = _strip_line_comments(sql)
    text = "\n".join(line for line in text.splitlines() if line.strip())
    return _BLOCK_COMMENT.sub("", text)


def split_statements(sql: str) -> list[str]:
    """Split SQL into ``;``-terminated statements while respecting quoted strings.

    Handles single-quoted (``'...'``), double-quoted (``"..."``), and
    dollar-quoted (``$$...$$``) literals so that semicolons inside them
    are not treated as statement terminators; Jinja tags are kept whole
    too. Comments left in the text
    (``keep_comments``) are kept with the statement that follows them.
    Blank or comment-only fragments are dropped; surrounding whitespace
    (leading line breaks included) is stripped.
    """
    stmts: list[str] = []
    current: list[str] = []
    i = 0
    length = len(sql)

    def flush() -> None:
        stmt = "".join(current).strip()
        # a fragment holding nothing but comments is not a statement
        if stmt and strip_comments(stmt).strip():
            stmts.append(stmt + ";")
        current.clear()

    while i < length:
        ch = sql[i]

        if sql[i : i + 2] in _JINJA_CLOSE:
            end = _jinja_end(sql, i)
            current.append(sql[i:end])
            i = end
            continue

        if ch in ("'", '"'):
            end = i + 1
            while end < length:
                if sql[end] == "\\" and end + 1 < length:
                    end += 2
                    continue
                if sql[end] == ch:
                    # doubled quote is an escaped quote
                    if end + 1 < length and sql[end + 1] == ch:
                        end += 2
                        continue
                    break
                end += 1
            current.append(sql[i : end + 1])
            i = end + 1
            continue

        if sql.startswith("$$", i):
            end = sql.find("$$", i + 2)
            end = length if end == -1 else end + 2
            current.append(sql[i:end])
            i = end
            continue

        if sql.startswith("--", i):
            end = sql.find("\n", i)
            end = length if end == -1 else end + 1
            current.append(sql[i:end])
            i = end
            continue

        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = length if end == -1 else end + 2
            current.append(sql[i:end])
            i = end
            continue

        if ch == ";":
            flush()
            i += 1
            continue

        current.append(ch)
        i += 1

    flush()
    return stmts
