"""Fixed-point unit conversions and venture pricing math.

All on-chain arithmetic stays in Python ints; Decimal is only used to parse
human input, never for computation.
"""
from decimal import Decimal, InvalidOperation, localcontext

SHARE_DECIMALS = 18
FIAT_DECIMALS = 6
SHARES_FOR_SALE_PERCENT = 40
SYMBOL_LENGTH = 4


def parse_units(value: str, decimals: int) -> int:
    """Convert a positive decimal string into base units.

    Raises ValueError for non-numbers, non-positive values and values with
    more fractional digits than the unit supports.
    """
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"Amount must be a positive number: {value!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {value!r} has more than {decimals} decimal places")
    return int(scaled)


def shares_for_sale(total_shares: int) -> int:
    """Portion of the share supply offered through the sale treasury"""
    return total_shares * SHARES_FOR_SALE_PERCENT // 100


def initial_price_per_share(fundraising_goal: int, sale_shares: int) -> int:
    """Fiat units per whole share so that selling `sale_shares` raises the goal.

    Integer division truncates; that is the accepted on-chain price.
    """
    if sale_shares <= 0:
        raise ValueError("Shares for sale must be positive")
    price = fundraising_goal * 10 ** SHARE_DECIMALS // sale_shares
    if price <= 0:
        raise ValueError("Fundraising goal is too small for the share supply")
    return price


def share_value(balance: int, price_per_share: int) -> int:
    """Fiat value of a share balance at a per-share price"""
    return balance * price_per_share // 10 ** SHARE_DECIMALS


def token_symbol(venture_name: str) -> str:
    """Ticker from the first characters of the venture name"""
    return "".join(venture_name[:SYMBOL_LENGTH].upper().split())


def token_name(venture_name: str) -> str:
    return f"{venture_name} Share"


def short_address(address: str) -> str:
    """Display fallback for wallets without a known owner"""
    return f"{address[:6]}...{address[-4:]}"
