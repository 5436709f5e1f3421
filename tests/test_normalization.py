from insider_lens.util.normalization import normalize_display_name


def test_upper_case_last_first_is_reversed():
    assert normalize_display_name("MUSK ELON") == "Elon Musk"


def test_middle_initial_is_kept_as_a_token():
    assert normalize_display_name("COOK TIMOTHY D") == "D Timothy Cook"


def test_extra_whitespace_collapses():
    assert normalize_display_name("  MUSK   ELON ") == "Elon Musk"


def test_mixed_case_passes_through():
    assert normalize_display_name("Jane Q. Public") == "Jane Q. Public"


def test_single_token_passes_through():
    assert normalize_display_name("BERKSHIRE") == "BERKSHIRE"


def test_blank_and_missing():
    assert normalize_display_name(None) is None
    assert normalize_display_name("") is None
    assert normalize_display_name("   ") is None
