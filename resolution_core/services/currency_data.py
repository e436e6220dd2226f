"""Static currency tables.

The seed rates are approximate units per USD and are only used when no live
rates are available. The budget tables hold rounded local amounts chosen for
marketing copy; they are deliberately independent of any exchange rate so the
labels stay put when currencies move.
"""

from __future__ import annotations

from resolution_core.schemas.currency import CurrencyInfo

USD = CurrencyInfo(code="USD", symbol="$", name="US Dollar", rate=1.0)

CURRENCIES: dict[str, CurrencyInfo] = {
    info.code: info
    for info in (
        USD,
        CurrencyInfo(code="NZD", symbol="NZ$", name="New Zealand Dollar", rate=1.65),
        CurrencyInfo(code="AUD", symbol="A$", name="Australian Dollar", rate=1.55),
        CurrencyInfo(code="GBP", symbol="£", name="British Pound", rate=0.79),
        CurrencyInfo(code="CAD", symbol="C$", name="Canadian Dollar", rate=1.35),
        CurrencyInfo(code="SGD", symbol="S$", name="Singapore Dollar", rate=1.35),
        CurrencyInfo(code="EUR", symbol="€", name="Euro", rate=0.92),
        CurrencyInfo(code="JPY", symbol="¥", name="Japanese Yen", rate=150.0),
    )
}

EURO_AREA = (
    "AT", "BE", "HR", "CY", "EE", "FI", "FR", "DE", "GR", "IE",
    "IT", "LV", "LT", "LU", "MT", "NL", "PT", "SK", "SI", "ES",
)

COUNTRY_CURRENCY: dict[str, str] = {
    "US": "USD",
    "NZ": "NZD",
    "AU": "AUD",
    "GB": "GBP",
    "CA": "CAD",
    "SG": "SGD",
    "JP": "JPY",
    "EU": "EUR",
    **{country: "EUR" for country in EURO_AREA},
}

# Symbols written after the amount ("90€"); everything else is a prefix.
SUFFIX_SYMBOL_CURRENCIES = frozenset({"EUR"})

# Budget-per-stay bucket edges in local currency: Under a, a-b, b-c, c-d, Over d
BUDGET_BUCKETS: dict[str, tuple[int, ...]] = {
    "USD": (50, 100, 200, 300),
    "NZD": (80, 165, 330, 500),
    "AUD": (75, 155, 310, 465),
    "GBP": (40, 80, 160, 240),
    "CAD": (70, 135, 270, 405),
    "SGD": (70, 135, 270, 405),
    "EUR": (45, 90, 185, 275),
    "JPY": (7500, 15000, 30000, 45000),
}

# Monthly marketing-spend bucket edges: Nothing, Under a, a-b, b-c, Over c
MARKETING_BUCKETS: dict[str, tuple[int, ...]] = {
    "USD": (50, 150, 300),
    "NZD": (80, 250, 500),
    "AUD": (75, 230, 465),
    "GBP": (40, 120, 240),
    "CAD": (70, 200, 405),
    "SGD": (70, 200, 405),
    "EUR": (45, 140, 275),
    "JPY": (7500, 22500, 45000),
}

USD_BUDGET_BUCKETS = BUDGET_BUCKETS["USD"]
USD_MARKETING_BUCKETS = MARKETING_BUCKETS["USD"]

# USD list prices per segment and tier: (monthly, annual)
PRICING_TIERS: dict[str, dict[str, tuple[float, float]]] = {
    "cat_parent": {
        "pepper": (3.99, 38.0),
        "chicken": (7.99, 77.0),
    },
    "cattery_owner": {
        "truffle": (15.0, 144.0),
        "pepper": (29.0, 278.0),
        "chicken": (59.0, 566.0),
    },
}
