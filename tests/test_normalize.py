from reading_backfill.core.normalize import (
    format_pubdate,
    is_low_precision_date,
    is_more_precise_date,
    is_valid_isbn13,
    isbn10_to_isbn13,
    normalize_isbn,
    strip_markup,
    to_isbn13,
)


def test_isbn_normalization_and_conversion() -> None:
    assert normalize_isbn("0-306-40615-2") == "0306406152"
    assert is_valid_isbn13("9780306406157")
    assert isbn10_to_isbn13("0306406152") == "9780306406157"


def test_isbn10_with_check_digit_2_converts_to_valid_isbn13() -> None:
    isbn13 = isbn10_to_isbn13("4-7741-4204-2")
    assert isbn13 == "9784774142043"
    assert is_valid_isbn13(isbn13)


def test_conversion_satisfies_checksum_for_many_inputs() -> None:
    for n in range(0, 1000000000, 7919 * 1009):
        isbn13 = isbn10_to_isbn13(f"{n:09d}0")
        assert isbn13.startswith("978")
        assert is_valid_isbn13(isbn13)


def test_to_isbn13_passes_13_digit_input_through() -> None:
    assert to_isbn13("978-4-00-000000-0") == "9784000000000"
    assert to_isbn13("0306406152") == "9780306406157"


def test_format_pubdate() -> None:
    assert format_pubdate("20200115") == "2020-01-15"
    assert format_pubdate("202001") == "2020-01"
    assert format_pubdate("2020") == "2020"
    assert format_pubdate("") == ""


def test_strip_markup_and_date_precision() -> None:
    assert strip_markup("<p>本文<br/>です</p>") == "本文です"
    assert is_low_precision_date("2019")
    assert not is_low_precision_date("2019-04")
    assert not is_low_precision_date("")
    assert is_more_precise_date("2019", "2019-04")
    assert not is_more_precise_date("2019", "2018")
    assert not is_more_precise_date("2019-04", "2019-04-01")


def test_isbn13_checksum_rejects_typos() -> None:
    assert is_valid_isbn13("978-4-00-000000-0")
    assert not is_valid_isbn13("9784000000001")
    assert not is_valid_isbn13("978400000000")
