"""
Bank directory endpoints
"""

from typing import Optional
from fastapi import APIRouter, HTTPException

from ..banks import (
    BANK_TYPES, INDONESIAN_BANKS, format_bank_display,
    get_bank_by_id, get_banks_by_type, get_popular_banks, search_banks
)


router = APIRouter()


@router.get("")
async def list_banks(
    type: Optional[str] = None,
    popular: bool = False,
    q: Optional[str] = None
):
    """List banks, optionally searched or filtered by type or popularity"""
    if q:
        banks = search_banks(q)
    elif type:
        banks = get_banks_by_type(type)
    elif popular:
        banks = get_popular_banks()
    else:
        banks = list(INDONESIAN_BANKS)
    return [bank.to_dict() for bank in banks]


@router.get("/types")
async def list_bank_types():
    """Bank categories with display labels and colors"""
    return {
        bank_type.value: {
            "label": info.label,
            "description": info.description,
            "color": info.color,
        }
        for bank_type, info in BANK_TYPES.items()
    }


@router.get("/{bank_id}")
async def get_bank(bank_id: str):
    """Get bank by ID"""
    bank = get_bank_by_id(bank_id)
    if not bank:
        raise HTTPException(status_code=404, detail="Bank not found")

    data = bank.to_dict()
    data["display"] = format_bank_display(bank)
    return data
