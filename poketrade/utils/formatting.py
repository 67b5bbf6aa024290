"""
Human-readable formatting helpers for console output.
"""


def format_usd(amount: float) -> str:
    """
    Format a dollar amount with two decimals, e.g. 10010.5 -> "$10,010.50".

    Negative amounts keep the sign in front of the dollar symbol ("-$20.00").
    """
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"
