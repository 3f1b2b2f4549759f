"""
Currency catalog and conversion endpoints
"""

from fastapi import APIRouter, HTTPException, Depends

from .deps import AppContainer, get_container
from .schemas import ConvertRequest, ConvertResponse
from ..currency import CURRENCIES, convert_currency, format_amount, get_currency, parse_amount
from ..errors import ConversionError


router = APIRouter()


@router.get("")
async def list_currencies():
    """Supported currencies"""
    return [currency.to_dict() for currency in CURRENCIES]


@router.get("/rates")
async def get_rates(
    base: str = "USD",
    container: AppContainer = Depends(get_container)
):
    """Exchange rate table for a base currency (fallback data if the source is down)"""
    table = await container.rate_client.fetch_rates(base.upper())
    return table.to_dict()


@router.post("/convert", response_model=ConvertResponse)
async def convert(
    request: ConvertRequest,
    container: AppContainer = Depends(get_container)
):
    """Convert an amount using the current rate table"""
    from_code = request.from_currency.upper()
    to_code = request.to_currency.upper()
    for code in (from_code, to_code):
        if get_currency(code) is None:
            raise HTTPException(status_code=400, detail=f"Unsupported currency: {code}")

    table = await container.rate_client.fetch_rates(container.settings.default_base_currency)
    try:
        amount = parse_amount(request.amount)
        converted = convert_currency(amount, from_code, to_code, table.rates, table.base)
        display_amount = format_amount(converted, to_code)
    except ConversionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ConvertResponse(
        amount=str(amount),
        from_currency=from_code,
        to_currency=to_code,
        converted_amount=str(converted),
        display_amount=display_amount,
        exchange_rate=str(converted / amount),
        rates_date=table.date,
        is_fallback=table.is_fallback,
    )
