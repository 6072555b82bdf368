from utils.formatting import format_decimal, format_kg, format_money


def test_format_decimal_german_style():
    assert format_decimal(1234.5) == "1.234,5"
    assert format_decimal(6.0) == "6"
    assert format_decimal(100) == "100"
    assert format_decimal(1234567.891) == "1.234.567,89"
    assert format_decimal(0.125, 3) == "0,125"


def test_format_decimal_without_fraction_digits():
    assert format_decimal(100, 0) == "100"


def test_format_money():
    assert format_money(1234.5, "EUR") == "1.234,50 €"
    assert format_money(21.94, "uah") == "21,94 ₴"
    assert format_money(5, "CHF") == "5,00 CHF"
    assert format_money(5, "") == "5,00"


def test_format_kg():
    assert format_kg(15.0) == "15"
    assert format_kg(2.25) == "2,25"
