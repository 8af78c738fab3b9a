"""Utility functions and helpers."""


def format_cost(cost: float) -> str:
    """Format cost as currency string.

    Args:
        cost: Cost value

    Returns:
        Formatted cost string (e.g., "$0.025500")
    """
    return f"${cost:.6f}"


def format_credits(credits: float) -> str:
    """Format credits, dropping trailing zeros (e.g., "51", "50.4")."""
    text = f"{credits:,.6f}".rstrip("0").rstrip(".")
    return text or "0"


def format_tokens(tokens: int) -> str:
    """Format token count with thousands separator.

    Args:
        tokens: Token count

    Returns:
        Formatted token string (e.g., "1,250")
    """
    return f"{tokens:,}"


def format_delta(delta: float, decimals: int = 6) -> str:
    """Format a signed delta (e.g., "+0.6", "-0.0003", "0").

    Args:
        delta: Delta value
        decimals: Maximum decimal places

    Returns:
        Signed string with trailing zeros removed
    """
    if delta == 0:
        return "0"
    text = f"{delta:+.{decimals}f}".rstrip("0").rstrip(".")
    return text


def get_delta_style(delta: float) -> str:
    """Rich style for a credit delta: red when the estimate was too low."""
    if delta > 0:
        return "red"
    if delta < 0:
        return "green"
    return "white"
