"""Display helpers for invoice amounts and places of supply."""
from __future__ import annotations

from typing import Optional

from .utils import normalize_state, round_money, to_decimal

CURRENCY_PREFIX = "Rs."

STATE_CODES = {
    "Jammu & Kashmir": "01",
    "Himachal Pradesh": "02",
    "Punjab": "03",
    "Chandigarh": "04",
    "Uttarakhand": "05",
    "Haryana": "06",
    "Delhi": "07",
    "Rajasthan": "08",
    "Uttar Pradesh": "09",
    "Bihar": "10",
    "Sikkim": "11",
    "Arunachal Pradesh": "12",
    "Nagaland": "13",
    "Manipur": "14",
    "Mizoram": "15",
    "Tripura": "16",
    "Meghalaya": "17",
    "Assam": "18",
    "West Bengal": "19",
    "Jharkhand": "20",
    "Odisha": "21",
    "Chhattisgarh": "22",
    "Madhya Pradesh": "23",
    "Gujarat": "24",
    "Daman & Diu": "25",
    "Dadra & Nagar Haveli": "26",
    "Maharashtra": "27",
    "Andhra Pradesh": "28",
    "Karnataka": "29",
    "Goa": "30",
    "Lakshadweep": "31",
    "Kerala": "32",
    "Tamil Nadu": "33",
    "Puducherry": "34",
    "Andaman & Nicobar Islands": "35",
    "Telangana": "36",
    "Ladakh": "37",
}
_STATE_CODES_BY_KEY = {name.lower(): code for name, code in STATE_CODES.items()}

ONES = [
    "", "ONE", "TWO", "THREE", "FOUR", "FIVE", "SIX", "SEVEN", "EIGHT", "NINE",
    "TEN", "ELEVEN", "TWELVE", "THIRTEEN", "FOURTEEN", "FIFTEEN", "SIXTEEN",
    "SEVENTEEN", "EIGHTEEN", "NINETEEN",
]
TENS = ["", "", "TWENTY", "THIRTY", "FORTY", "FIFTY", "SIXTY", "SEVENTY", "EIGHTY", "NINETY"]

# Indian scale, largest first
SCALES = [(10_000_000, "CRORE"), (100_000, "LAKH"), (1_000, "THOUSAND"), (100, "HUNDRED")]


def get_state_code(state: Optional[str]) -> Optional[str]:
    """GST state code for a state name, matched case-insensitively."""
    key = normalize_state(state)
    if key is None:
        return None
    return _STATE_CODES_BY_KEY.get(key)


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: object) -> str:
    """Format an amount as ``Rs. 1,00,300.00``."""
    value = round_money(to_decimal(amount))
    sign = "-" if value < 0 else ""
    integer, _, fraction = f"{abs(value):.2f}".partition(".")
    return f"{CURRENCY_PREFIX} {sign}{_group_indian(integer)}.{fraction}"


def _below_hundred(n: int) -> str:
    if n < 20:
        return ONES[n]
    return " ".join(word for word in (TENS[n // 10], ONES[n % 10]) if word)


def number_to_words(n: int) -> str:
    """Spell a non-negative integer using crore/lakh/thousand grouping."""
    if n == 0:
        return "ZERO"
    words = []
    for size, label in SCALES:
        if n >= size:
            count, n = divmod(n, size)
            words.append(f"{number_to_words(count)} {label}")
    if n:
        words.append(_below_hundred(n))
    return " ".join(words)


def amount_in_words(amount: object) -> str:
    """Spell an invoice amount, e.g. ``ONE THOUSAND RUPEES AND FIFTY PAISE ONLY``."""
    value = round_money(abs(to_decimal(amount)))
    rupees = int(value)
    paise = int((value - rupees) * 100)
    text = f"{number_to_words(rupees)} RUPEES"
    if paise:
        text += f" AND {number_to_words(paise)} PAISE"
    return f"{text} ONLY"
