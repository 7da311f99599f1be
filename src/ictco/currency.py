"""
Currency conversion and formatting.
"""

from typing import Dict

from .errors import ConfigurationCatalogError


# symbol, decimals, symbol-before-amount
CURRENCY_FORMATS = {
    "USD": ("$", 2, True),
    "EUR": ("€", 2, False),
    "SAR": ("ر.س", 2, False),
    "AED": ("د.إ", 2, False),
}


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: Dict[str, float],
) -> float:
    """
    Convert an amount between currencies.

    Looks up the direct "FROM_TO" rate first and falls back to the inverse
    of "TO_FROM".

    Args:
        amount: Amount in from_currency
        from_currency: Source currency code
        to_currency: Target currency code
        rates: Exchange rates keyed "FROM_TO"

    Returns:
        Amount in to_currency

    Raises:
        ConfigurationCatalogError: If neither rate is available
    """
    if from_currency == to_currency:
        return amount

    rate = rates.get(f"{from_currency}_{to_currency}")
    if rate:
        return amount * rate

    inverse = rates.get(f"{to_currency}_{from_currency}")
    if inverse:
        return amount / inverse

    raise ConfigurationCatalogError("exchange_rate", f"{from_currency}_{to_currency}")


def format_currency(amount: float, currency: str, decimals: int = None) -> str:
    """
    Format an amount with its currency symbol.

    Args:
        amount: Amount to format
        currency: Currency code
        decimals: Override the currency's default number of decimals

    Returns:
        Formatted string, e.g. "$1,234.50" or "1,234.50 €"
    """
    symbol, default_decimals, prefix = CURRENCY_FORMATS.get(currency, (currency, 2, False))
    if decimals is None:
        decimals = default_decimals

    sign = "-" if amount < 0 else ""
    number = f"{abs(amount):,.{decimals}f}"
    if prefix:
        return f"{sign}{symbol}{number}"
    return f"{sign}{number} {symbol}"
