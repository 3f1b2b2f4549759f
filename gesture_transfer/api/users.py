"""
Transfer user directory endpoints
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends

from .deps import AppContainer, get_container
from ..users import format_member_since


router = APIRouter()


@router.get("")
async def list_users(
    q: Optional[str] = None,
    exclude: Optional[str] = None,
    online: bool = False,
    container: AppContainer = Depends(get_container)
):
    """List or search users who can take part in transfers"""
    directory = container.user_directory
    if online:
        users = directory.get_online_users(exclude)
    else:
        users = directory.search_users(q or "", exclude)
    return [user.to_dict() for user in users]


@router.get("/recent")
async def list_recent_users(
    exclude: Optional[str] = None,
    limit: int = 5,
    container: AppContainer = Depends(get_container)
):
    """Users most recently transferred with"""
    users = container.user_directory.get_recent_users(exclude, limit)
    return [user.to_dict() for user in users]


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    container: AppContainer = Depends(get_container)
):
    """Get user by ID with display details"""
    directory = container.user_directory
    user = directory.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    info = directory.format_user_info(user)
    data = user.to_dict()
    data.update({
        "display_name": info.display_name,
        "bank_info": info.bank_info,
        "status_indicator": info.status_indicator,
        "last_seen_label": directory.last_seen_label(user),
        "member_since": format_member_since(user.joined_date),
        "can_receive_transfer": directory.can_receive_transfer(user),
    })
    return data


@router.post("/{user_id}/transfers")
async def record_user_transfer(
    user_id: str,
    container: AppContainer = Depends(get_container)
):
    """Bump a user's transfer counter"""
    if not container.user_directory.record_transfer(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return container.user_directory.get_user_by_id(user_id).to_dict()["transfer_history"]
