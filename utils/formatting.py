# storefront/utils/formatting.py

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "UAH": "₴",
    "PLN": "zł",
    "USD": "$",
}


def format_decimal(n: float, max_fraction_digits: int = 2) -> str:
    """
    Format a number German-style: '.' as thousands separator, ',' as decimal
    separator, trailing zeros dropped.
    Example: 1234.5 -> "1.234,5", 6.0 -> "6"
    """
    text = f"{n:,.{max_fraction_digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_money(n: float, currency: str = "UAH") -> str:
    """
    Example: format_money(1234.5, "EUR") -> "1.234,50 €"
    """
    amount = f"{n:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    symbol = CURRENCY_SYMBOLS.get((currency or "").upper(), (currency or "").upper())
    return f"{amount} {symbol}".strip()


def format_kg(n: float) -> str:
    return format_decimal(n, 2)
