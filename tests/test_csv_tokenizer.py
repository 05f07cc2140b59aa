"""
Unit tests for the quote-aware CSV tokenizer.
"""

from tabular_insights.csv_tokenizer import parse_csv, parse_csv_line

SAMPLE_CSV = """region,units,total
North,10,2500
South,5,1300
North,8,2000"""


class TestParseCsv:
    """Records built from whole documents."""

    def test_parses_rows_against_header(self):
        rows = parse_csv(SAMPLE_CSV)
        assert len(rows) == 3
        assert rows[0] == {"region": "North", "units": "10", "total": "2500"}
        assert rows[2]["total"] == "2000"

    def test_blank_lines_are_not_rows(self):
        text = "\n\nregion,units\n\nNorth,1\n   \nSouth,2\n\n"
        rows = parse_csv(text)
        assert [r["region"] for r in rows] == ["North", "South"]

    def test_crlf_line_endings(self):
        rows = parse_csv("a,b\r\n1,2\r\n3,4\r\n")
        assert rows == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]

    def test_empty_input(self):
        assert parse_csv("") == []
        assert parse_csv("  \n \r\n ") == []

    def test_header_only(self):
        assert parse_csv("a,b,c") == []

    def test_short_row_padded_with_empty_strings(self):
        rows = parse_csv("a,b,c\n1")
        assert rows == [{"a": "1", "b": "", "c": ""}]

    def test_long_row_drops_extra_fields(self):
        rows = parse_csv("a,b\n1,2,3,4")
        assert rows == [{"a": "1", "b": "2"}]

    def test_quoted_field_with_comma_and_escaped_quote(self):
        rows = parse_csv('name,note\nA,"a,b""c"')
        assert rows[0]["note"] == 'a,b"c'

    def test_row_with_no_fields_is_skipped(self):
        rows = parse_csv('h\n""\nx')
        assert rows == [{"h": "x"}]

    def test_leading_byte_order_mark_dropped(self):
        rows = parse_csv("\ufeffregion,units\nNorth,1")
        assert list(rows[0]) == ["region", "units"]


class TestParseCsvLine:
    """Field splitting within a single line."""

    def test_fields_are_trimmed(self):
        assert parse_csv_line("  a ,b  ,  c") == ["a", "b", "c"]

    def test_trailing_comma_yields_empty_field(self):
        assert parse_csv_line("1,2,") == ["1", "2", ""]

    def test_empty_middle_field(self):
        assert parse_csv_line("1,,3") == ["1", "", "3"]

    def test_quoted_comma_is_not_a_separator(self):
        assert parse_csv_line('East,"1,200",900') == ["East", "1,200", "900"]

    def test_unterminated_quote_absorbs_rest_of_line(self):
        assert parse_csv_line('a,"b,c,d') == ["a", "b,c,d"]

    def test_quotes_around_padded_value(self):
        assert parse_csv_line('  "x y"  ,z') == ["x y", "z"]
