"""
Deterministic Buy/Hold/Sell derivation from analysis text.
"""

BUY = "Buy"
HOLD = "Hold"
SELL = "Sell"
NEUTRAL = "Neutral"


def derive_recommendation(text: str) -> str:
    """
    Derive a recommendation from keywords in the analysis.

    Negated phrases ("don't buy", "don't sell") do not count as a
    recommendation for that action.
    """
    lowered = (text or "").lower().replace("’", "'")

    if "buy" in lowered and "don't buy" not in lowered:
        return BUY
    if "hold" in lowered:
        return HOLD
    if "sell" in lowered and "don't sell" not in lowered:
        return SELL
    return NEUTRAL
