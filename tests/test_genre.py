from reading_backfill.core.genre import (
    CATEGORY_MAP,
    GENRE_OPTIONS,
    CCODE_GENRE_MAP,
    genre_from_ccode,
    is_known_genre,
    map_category_to_genre,
)


def test_exact_match_returns_mapped_label() -> None:
    assert map_category_to_genre(["Fiction"]) == "文学・評論"
    assert map_category_to_genre(["Computers"]) == "コンピュータ・IT"


def test_substring_match_is_case_insensitive() -> None:
    assert map_category_to_genre(["computers / programming / general"]) == "コンピュータ・IT"
    assert map_category_to_genre(["Business & Economics / Management"]) == "ビジネス・経済"


def test_substring_match_first_key_in_table_order_wins() -> None:
    # "Fiction" is declared before "Juvenile Fiction"
    assert map_category_to_genre(["Juvenile Fiction / General"]) == "文学・評論"


def test_unknown_category_passes_through() -> None:
    assert map_category_to_genre(["Xyzzy"]) == "Xyzzy"
    assert map_category_to_genre([]) == ""


def test_later_category_can_match_when_first_does_not() -> None:
    assert map_category_to_genre(["Xyzzy", "History"]) == "歴史・地理"


def test_ccode_uses_content_digits() -> None:
    subjects = [
        {"SubjectSchemeIdentifier": "79", "SubjectCode": "22"},
        {"SubjectSchemeIdentifier": "78", "SubjectCode": "0093"},
    ]
    assert genre_from_ccode(subjects) == "文学・評論"
    assert genre_from_ccode([{"SubjectSchemeIdentifier": "78", "SubjectCode": "0055"}]) == "コンピュータ・IT"


def test_ccode_without_match_is_empty() -> None:
    assert genre_from_ccode([{"SubjectSchemeIdentifier": "78", "SubjectCode": "0099"}]) == ""
    assert genre_from_ccode([{"SubjectSchemeIdentifier": "78", "SubjectCode": "93"}]) == ""
    assert genre_from_ccode([]) == ""


def test_tables_only_produce_known_genres() -> None:
    assert all(is_known_genre(v) for v in CATEGORY_MAP.values())
    assert all(is_known_genre(v) for v in CCODE_GENRE_MAP.values())
    assert len(GENRE_OPTIONS) == len(set(GENRE_OPTIONS))
