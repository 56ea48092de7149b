"""Tests for CSV serialisation of export rows."""

from app.utils.csv_export import rows_to_csv


def test_empty_rows_give_empty_string() -> None:
    assert rows_to_csv([]) == ""


def test_values_with_commas_are_quoted() -> None:
    assert rows_to_csv([{"a": 1, "b": "x,y"}]) == 'a,b\n1,"x,y"'


def test_quotes_and_newlines_are_escaped() -> None:
    csv_text = rows_to_csv([{"note": 'say "hi"'}, {"note": "line1\nline2"}])

    assert csv_text == 'note\n"say ""hi"""\n"line1\nline2"'


def test_header_comes_from_first_row() -> None:
    csv_text = rows_to_csv([{"id": "1", "name": "A"}, {"id": "2", "name": "B", "extra": "x"}])

    assert csv_text.splitlines() == ["id,name", "1,A", "2,B"]


def test_cell_conversion() -> None:
    csv_text = rows_to_csv(
        [{"none": None, "flag": True, "off": False, "media": ["m1", "m2"], "details": {"k": 1}}]
    )

    header, row = csv_text.split("\n")
    assert header == "none,flag,off,media,details"
    assert row == ',true,false,"[""m1"",""m2""]","{""k"":1}"'


def test_no_trailing_newline() -> None:
    assert not rows_to_csv([{"a": 1}]).endswith("\n")
