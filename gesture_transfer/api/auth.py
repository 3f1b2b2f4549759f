"""
Session endpoints
"""

from fastapi import APIRouter, HTTPException, Depends

from .deps import AppContainer, get_container
from .schemas import LoginRequest, AuthResponse, ProfileUpdateRequest
from ..session import MSG_NO_SESSION


router = APIRouter()


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    container: AppContainer = Depends(get_container)
):
    """Sign in with a Gmail address and phone number"""
    result = await container.session_store.login(request.email, request.phone)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return AuthResponse(success=result.success, message=result.message)


@router.post("/logout")
async def logout(container: AppContainer = Depends(get_container)):
    """End the current session"""
    container.session_store.logout()
    return {"message": "Logged out"}


@router.get("/session")
async def get_session(container: AppContainer = Depends(get_container)):
    """Current authentication state"""
    store = container.session_store
    return {
        "is_authenticated": store.is_authenticated,
        "is_loading": store.state.is_loading,
        "user": store.user.to_dict() if store.user else None,
    }


@router.put("/profile", response_model=AuthResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    container: AppContainer = Depends(get_container)
):
    """Merge profile fields for the signed-in user"""
    result = container.session_store.update_profile(request.updates)
    if not result.success:
        status_code = 401 if result.message == MSG_NO_SESSION else 400
        raise HTTPException(status_code=status_code, detail=result.message)
    return AuthResponse(success=result.success, message=result.message)
