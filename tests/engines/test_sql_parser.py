"""Unit tests for engines.sql.parser."""

from querydispatch.engines.sql import split_statements, strip_comments


class TestStripComments:
    def test_line_and_block_comments(self):
        sql = "-- comment\nSELECT 1;\n/* block\ncomment */\nSELECT 2;"
        assert strip_comments(sql) == "SELECT 1;\nSELECT 2;"

    def test_hash_comment(self):
        assert strip_comments("SELECT 1; # mysql style\nSELECT 2;") == "SELECT 1; \nSELECT 2;"

    def test_trailing_line_comment(self):
        assert strip_comments("SELECT a -- the a column\nFROM t;") == "SELECT a \nFROM t;"

    def test_comment_markers_inside_quotes_kept(self):
        sql = "SELECT '--not a comment', '#tag' FROM t;"
        assert strip_comments(sql) == sql

    def test_blank_lines_dropped(self):
        assert strip_comments("\n\nSELECT 1;\n   \n-- x\n") == "SELECT 1;"

    def test_inline_block_comment(self):
        assert strip_comments("SELECT /* inline */ 1;") == "SELECT  1;"


class TestSplitStatements:
    """Tests for the quote-aware statement splitter."""

    def test_single(self):
        assert split_statements("SELECT 1") == ["SELECT 1;"]

    def test_two_statements(self):
        assert split_statements("SELECT 1; SELECT 2") == ["SELECT 1;", "SELECT 2;"]

    def test_leading_line_breaks_stripped(self):
        assert split_statements("SELECT 1;\n\nSELECT 2;\n") == ["SELECT 1;", "SELECT 2;"]

    def test_empty(self):
        assert split_statements("") == []
        assert split_statements("  ;  ;  ") == []

    def test_semicolon_in_single_quotes(self):
        sql = "SELECT * FROM t WHERE name = 'foo;bar';"
        assert split_statements(sql) == [sql]

    def test_semicolon_in_double_quotes(self):
        sql = 'SELECT * FROM t WHERE "col;name" = 1;'
        assert split_statements(sql) == [sql]

    def test_escaped_quote(self):
        sql = "SELECT 'it''s;here';"
        assert split_statements(sql) == [sql]

    def test_dollar_quoting(self):
        sql = "SELECT $$semi;colon$$;"
        assert split_statements(sql) == [sql]

    def test_line_comment_kept_with_next_statement(self):
        result = split_statements("SELECT 1; -- comment; not a split\nSELECT 2;")
        assert len(result) == 2
        assert result[1] == "-- comment; not a split\nSELECT 2;"

    def test_comment_only_tail_dropped(self):
        assert split_statements("SELECT 1;\n-- end of file") == ["SELECT 1;"]

    def test_block_comment(self):
        assert len(split_statements("SELECT /* ; */ 1; SELECT 2")) == 2


class TestJinjaTags:
    def test_template_comment_kept(self):
        sql = "SELECT {# the id #} {{ id }};"
        assert strip_comments(sql) == sql

    def test_multiline_template_comment_kept(self):
        sql = "SELECT {{ id }}\n{# note:\n   # is not a SQL comment here\n#}\nFROM t;"
        assert strip_comments(sql) == sql

    def test_sql_comment_after_tag_still_stripped(self):
        assert strip_comments("SELECT {{ id }} -- trailing\nFROM t;") == "SELECT {{ id }} \nFROM t;"

    def test_semicolon_inside_tag_does_not_split(self):
        sql = "SELECT {{ ';'.join(parts) }} FROM t;"
        assert split_statements(sql) == [sql]
