"""
Multi-Currency Support Module

Currency directory, exchange-rate lookup with a static fallback table, and
conversion through a common base currency. Amounts and rates are Decimal;
float never enters the arithmetic.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional
from enum import Enum
import logging
import re

import httpx

from .config import GestureTransferConfig, get_config
from .errors import ConversionError

# Set global decimal context for financial precision
getcontext().prec = 28

logger = logging.getLogger("gesture_transfer.currency")


class Currency(Enum):
    """Supported ISO 4217 currencies with display data"""
    IDR = ("IDR", "Indonesian Rupiah", "Rp", 0)
    USD = ("USD", "US Dollar", "$", 2)
    EUR = ("EUR", "Euro", "€", 2)
    JPY = ("JPY", "Japanese Yen", "¥", 0)
    GBP = ("GBP", "British Pound", "£", 2)
    AUD = ("AUD", "Australian Dollar", "A$", 2)
    CAD = ("CAD", "Canadian Dollar", "C$", 2)
    CHF = ("CHF", "Swiss Franc", "CHF", 2)
    CNY = ("CNY", "Chinese Yuan", "¥", 2)
    SGD = ("SGD", "Singapore Dollar", "S$", 2)

    def __init__(self, code: str, display_name: str, symbol: str, precision: int):
        self.code = code
        self.display_name = display_name
        self.symbol = symbol
        self.precision = precision

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "name": self.display_name, "symbol": self.symbol}


CURRENCIES: List[Currency] = list(Currency)

# Rates against USD used whenever the remote table is unavailable
FALLBACK_USD_RATES: Dict[str, Decimal] = {
    "IDR": Decimal("15000"),
    "USD": Decimal("1"),
    "EUR": Decimal("0.85"),
    "JPY": Decimal("110"),
    "GBP": Decimal("0.73"),
    "AUD": Decimal("1.35"),
    "CAD": Decimal("1.25"),
    "CHF": Decimal("0.92"),
    "CNY": Decimal("6.45"),
    "SGD": Decimal("1.35"),
}


def get_currency(code: str) -> Optional[Currency]:
    """Look up a supported currency by ISO code (case-insensitive)"""
    try:
        return Currency[code.upper()]
    except (KeyError, AttributeError):
        return None


@dataclass
class ExchangeRateTable:
    """Rates for every known code expressed against a single base currency"""
    base: str
    rates: Dict[str, Decimal]
    date: str
    is_fallback: bool = False

    def rate_for(self, code: str) -> Optional[Decimal]:
        if code == self.base:
            return Decimal("1")
        return self.rates.get(code)

    def to_dict(self) -> Dict[str, object]:
        return {
            "base": self.base,
            "rates": {code: str(rate) for code, rate in self.rates.items()},
            "date": self.date,
            "is_fallback": self.is_fallback,
        }


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def get_fallback_rates(base_currency: str = "USD") -> Dict[str, Decimal]:
    """
    Static rate table re-expressed against the requested base.

    The base always maps to exactly 1. An unknown base returns the USD table.
    """
    base_rate = FALLBACK_USD_RATES.get(base_currency)
    if base_rate is None or base_currency == "USD":
        return dict(FALLBACK_USD_RATES)

    adjusted = {code: rate / base_rate for code, rate in FALLBACK_USD_RATES.items()}
    adjusted[base_currency] = Decimal("1")
    return adjusted


def _to_positive_decimal(value) -> Optional[Decimal]:
    # bool is an int subclass; a JSON true is not a rate
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        return None
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        return None
    if not rate.is_finite() or rate <= Decimal("0"):
        return None
    return rate


class ExchangeRateClient:
    """Async client for the public exchange-rate endpoint"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], str] = _today,
        settings: Optional[GestureTransferConfig] = None
    ):
        settings = settings or get_config()
        self.base_url = base_url or settings.rates_api_url
        self.timeout = timeout if timeout is not None else settings.rates_timeout
        self._today = today
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def fetch_rates(self, base_currency: str = "USD") -> ExchangeRateTable:
        """
        Fetch the rate table for a base currency.

        Never raises: transport errors, bad status codes and malformed
        payloads all produce the fallback table.
        """
        try:
            response = await self._client.get(self.base_url, params={"base": base_currency})
            response.raise_for_status()
            data = response.json()

            if not isinstance(data, dict) or not isinstance(data.get("rates"), dict):
                raise ValueError("Invalid API response structure")

            rates = get_fallback_rates(base_currency)
            for code, value in data["rates"].items():
                rate = _to_positive_decimal(value)
                if rate is not None:
                    rates[code] = rate

            missing = [c.code for c in CURRENCIES if c.code != base_currency and c.code not in data["rates"]]
            if missing:
                logger.debug(f"Rate payload missing {', '.join(missing)}; using fallback values")

            return ExchangeRateTable(
                base=data.get("base") or base_currency,
                rates=rates,
                date=data.get("date") or self._today(),
            )

        except Exception as e:
            logger.warning(f"Exchange rate fetch failed for base {base_currency}: {e}")
            return self.fallback_table(base_currency)

    def fallback_table(self, base_currency: str = "USD") -> ExchangeRateTable:
        return ExchangeRateTable(
            base=base_currency,
            rates=get_fallback_rates(base_currency),
            date=self._today(),
            is_fallback=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def convert_currency(
    amount,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, Decimal],
    base_currency: str = "USD"
) -> Decimal:
    """
    Convert an amount between two currency codes through the base currency.

    Args:
        amount: Positive amount in from_currency
        from_currency: Source code
        to_currency: Target code
        rates: Mapping of code to rate against base_currency
        base_currency: Code the rates are expressed against

    Returns:
        Converted Decimal amount (unrounded)

    Raises:
        ConversionError: If the amount is not positive or a needed rate is missing
    """
    amount = parse_amount(amount)
    if amount <= Decimal("0"):
        raise ConversionError("Amount must be greater than 0")

    if from_currency == to_currency:
        return amount

    if not isinstance(rates, Mapping):
        raise ConversionError("Invalid exchange rates data")

    from_rate = Decimal("1")
    if from_currency != base_currency:
        from_rate = _to_positive_decimal(rates.get(from_currency))
        if from_rate is None:
            raise ConversionError(f"Exchange rate not available for {from_currency}")

    to_rate = Decimal("1")
    if to_currency != base_currency:
        to_rate = _to_positive_decimal(rates.get(to_currency))
        if to_rate is None:
            raise ConversionError(f"Exchange rate not available for {to_currency}")

    if from_currency == base_currency:
        return amount * to_rate
    if to_currency == base_currency:
        return amount / from_rate
    return amount / from_rate * to_rate


# Largest accepted input amount; keeps converted values inside the 28-digit context
MAX_AMOUNT = Decimal("1e15")


def _amount_affix_pattern() -> str:
    tokens = {currency.code for currency in Currency} | {currency.symbol for currency in Currency}
    return "|".join(re.escape(token) for token in sorted(tokens, key=len, reverse=True))


_AFFIX = _amount_affix_pattern()
AMOUNT_PATTERN = re.compile(
    rf'^(?P<sign>[+-]?)\s*(?:{_AFFIX})?\s*(?P<number>\d[\d.,]*)\s*(?:{_AFFIX})?$',
    re.IGNORECASE
)


def parse_amount(value) -> Decimal:
    """
    Coerce user input to Decimal, handling common string formats

    Accepts digits with "," and "." separators, an optional sign and an
    optional currency code or symbol before or after the number.

    Raises:
        ConversionError: If the value cannot be read as a finite number
    """
    if isinstance(value, bool):
        raise ConversionError(f"Cannot convert '{value}' to an amount")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif not value or not isinstance(value, str):
        raise ConversionError("Amount must be a number or a non-empty string")
    else:
        amount = _parse_amount_string(value)

    if not amount.is_finite():
        raise ConversionError(f"Cannot convert '{value}' to an amount")
    if abs(amount) >= MAX_AMOUNT:
        raise ConversionError("Amount is too large")
    return amount


def _parse_amount_string(value: str) -> Decimal:
    match = AMOUNT_PATTERN.match(value.strip())
    if not match:
        raise ConversionError(f"Cannot convert '{value}' to an amount")
    clean_value = match.group("number")

    if ',' in clean_value and '.' in clean_value:
        # Both comma and dot - assume comma is thousands separator
        clean_value = clean_value.replace(',', '')
    elif ',' in clean_value:
        parts = clean_value.split(',')
        if len(parts) == 2 and len(parts[1]) <= 2:  # Decimal separator
            clean_value = clean_value.replace(',', '.')
        else:  # Thousands separator
            clean_value = clean_value.replace(',', '')

    try:
        return Decimal(match.group("sign") + clean_value)
    except InvalidOperation:
        raise ConversionError(f"Cannot convert '{value}' to an amount")


def quantize_amount(amount: Decimal, code: str) -> Decimal:
    """
    Round to the display precision of a currency (2 places if unknown)

    Raises:
        ConversionError: If the amount does not fit the decimal context
    """
    currency = get_currency(code)
    precision = currency.precision if currency else 2
    try:
        return amount.quantize(Decimal('0.1') ** precision, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ConversionError(f"Amount {amount} cannot be represented in {code}")


def format_amount(amount: Decimal, code: str) -> str:
    """Format for display, e.g. "$1,234.56" or "Rp 1,000,000" """
    currency = get_currency(code)
    rounded = quantize_amount(Decimal(str(amount)), code)
    precision = currency.precision if currency else 2
    number = f"{abs(rounded):,.{precision}f}"
    sign = "-" if rounded < 0 else ""

    if currency is None:
        return f"{sign}{code} {number}"
    if currency.symbol.isalpha():
        return f"{sign}{currency.symbol} {number}"
    return f"{sign}{currency.symbol}{number}"
