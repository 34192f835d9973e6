from datetime import datetime, timezone

WEI_PER_ETH = 10**18


def date_from_string(text: str) -> datetime:
    """'YYYY-MM-DD' -> midnight UTC."""
    return datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)


def wei_to_eth(wei: int) -> float:
    return wei / WEI_PER_ETH
