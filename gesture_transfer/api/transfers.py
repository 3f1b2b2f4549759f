"""
Transfer history endpoints
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, status

from .deps import AppContainer, get_container
from .schemas import CreateTransferRequest, UpdateTransferStatusRequest
from ..currency import convert_currency, get_currency, parse_amount
from ..errors import ConversionError
from ..transfers import TransferMethod, TransferStatus, TransferType, create_transfer_record


router = APIRouter()


@router.get("")
async def list_transfers(
    user_id: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
    limit: Optional[int] = None,
    container: AppContainer = Depends(get_container)
):
    """Transfer history, newest first"""
    try:
        transfer_type = TransferType(type) if type else None
        transfer_status = TransferStatus(status) if status else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    transfers = container.transfer_history.search_transfers(q or "", user_id)
    if transfer_type:
        transfers = [t for t in transfers if t.type == transfer_type]
    if transfer_status:
        transfers = [t for t in transfers if t.status == transfer_status]
    if limit is not None:
        transfers = transfers[:limit]
    return [t.to_dict() for t in transfers]


@router.get("/stats")
async def get_transfer_stats(
    user_id: Optional[str] = None,
    container: AppContainer = Depends(get_container)
):
    """Counts by type and status plus completed volume per currency"""
    stats = container.transfer_history.get_transfer_stats(user_id)
    return {
        "total_transfers": stats.total_transfers,
        "total_sent": stats.total_sent,
        "total_received": stats.total_received,
        "total_conversions": stats.total_conversions,
        "completed_transfers": stats.completed_transfers,
        "failed_transfers": stats.failed_transfers,
        "total_volume": {code: str(amount) for code, amount in stats.total_volume.items()},
    }


@router.get("/{transfer_id}")
async def get_transfer(
    transfer_id: str,
    container: AppContainer = Depends(get_container)
):
    """Get transfer by ID"""
    record = container.transfer_history.get_transfer_by_id(transfer_id)
    if not record:
        raise HTTPException(status_code=404, detail="Transfer not found")

    data = record.to_dict()
    data["relative_time"] = container.transfer_history.format_relative_time(record.timestamp)
    return data


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transfer(
    request: CreateTransferRequest,
    container: AppContainer = Depends(get_container)
):
    """Convert the amount and record a transfer to a user, or a plain conversion"""
    from_code = request.from_currency.upper()
    to_code = request.to_currency.upper()
    for code in (from_code, to_code):
        if get_currency(code) is None:
            raise HTTPException(status_code=400, detail=f"Unsupported currency: {code}")

    try:
        method = TransferMethod(request.method)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    recipient = None
    if request.to_user_id:
        recipient = container.user_directory.get_user_by_id(request.to_user_id)
        if not recipient:
            raise HTTPException(status_code=404, detail="User not found")

    table = await container.rate_client.fetch_rates(container.settings.default_base_currency)
    try:
        amount = parse_amount(request.amount)
        converted = convert_currency(amount, from_code, to_code, table.rates, table.base)
    except ConversionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    fields = create_transfer_record(
        amount=amount,
        from_currency=from_code,
        to_currency=to_code,
        converted_amount=converted,
        exchange_rate=converted / amount,
        selected_user=recipient,
        method=method,
        notes=request.notes,
    )
    record = container.transfer_history.add_transfer(**fields)
    if recipient:
        container.user_directory.record_transfer(recipient.id)

    return record.to_dict()


@router.patch("/{transfer_id}/status")
async def update_transfer_status(
    transfer_id: str,
    request: UpdateTransferStatusRequest,
    container: AppContainer = Depends(get_container)
):
    """Change the status of a transfer"""
    try:
        new_status = TransferStatus(request.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not container.transfer_history.update_transfer_status(transfer_id, new_status):
        raise HTTPException(status_code=404, detail="Transfer not found")
    return {"message": "Transfer status updated", "status": new_status.value}
