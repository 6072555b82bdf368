from utils.collation import sort_uk, uk_sort_key


def test_ukrainian_alphabet_order():
    words = ["йогурт", "ізюм", "ґудзик", "груша", "їжак", "абрикос", "ирій", "єнот", "яблуко"]
    assert sort_uk(words) == ["абрикос", "груша", "ґудзик", "єнот", "ирій", "ізюм", "їжак", "йогурт", "яблуко"]


def test_cyrillic_before_latin():
    assert sort_uk(["Apfel", "Яблуко", "Морква"]) == ["Морква", "Яблуко", "Apfel"]


def test_case_is_a_tie_breaker_only():
    assert sort_uk(["banana", "Apple", "apple", "Banana"]) == ["apple", "Apple", "banana", "Banana"]


def test_accents_are_secondary():
    assert sort_uk(["Ozon", "Óbuda", "Obuda"]) == ["Obuda", "Óbuda", "Ozon"]


def test_polish_letters_sort_with_their_base():
    names = ["Marchew", "Jabłko/Apfel Lobo", "Jabłko/Apfel Eliza", "Cebula żółta/ Zwiebel gelbe", "Czosnek"]
    assert sort_uk(names) == [
        "Cebula żółta/ Zwiebel gelbe",
        "Czosnek",
        "Jabłko/Apfel Eliza",
        "Jabłko/Apfel Lobo",
        "Marchew",
    ]


def test_spaces_and_digits_before_letters():
    assert sort_uk(["a", "1", " "]) == [" ", "1", "a"]
    assert sort_uk(["ab", "a b"]) == ["a b", "ab"]


def test_prefix_sorts_first():
    assert sort_uk(["Kapusta pekińska", "Kapusta"]) == ["Kapusta", "Kapusta pekińska"]


def test_key_is_deterministic_and_total():
    assert uk_sort_key("Apfel") == uk_sort_key("Apfel")
    assert uk_sort_key("") < uk_sort_key("a")
