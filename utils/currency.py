def format_currency(amount: float, currency: str = "CZK") -> str:
    """Format a float as currency string, e.g. '1,234.56 CZK'."""
    return f"{amount:,.2f} {currency}"


def format_signed(amount: float, currency: str = "CZK") -> str:
    """Format with +/- sign."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{abs(amount):,.2f} {currency}"
