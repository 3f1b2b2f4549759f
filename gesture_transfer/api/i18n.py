"""
Language and translation endpoints
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Request

from .deps import AppContainer, get_container
from .schemas import SetLanguageRequest
from ..i18n import LANGUAGES, is_supported_language


router = APIRouter()


@router.get("/languages")
async def list_languages():
    """Supported languages"""
    return [language.to_dict() for language in LANGUAGES]


@router.get("/language")
async def get_language(container: AppContainer = Depends(get_container)):
    """Current language"""
    return container.language.current.to_dict()


@router.put("/language")
async def set_language(
    request: SetLanguageRequest,
    container: AppContainer = Depends(get_container)
):
    """Switch and persist the current language"""
    if not container.language.set_language(request.code):
        raise HTTPException(status_code=400, detail=f"Unsupported language: {request.code}")
    return container.language.current.to_dict()


@router.get("/translate/{key}")
async def translate(
    key: str,
    request: Request,
    language: Optional[str] = None,
    container: AppContainer = Depends(get_container)
):
    """Translate a dotted key; other query parameters fill {placeholders}"""
    if language and not is_supported_language(language):
        raise HTTPException(status_code=400, detail=f"Unsupported language: {language}")

    params = {name: value for name, value in request.query_params.items() if name != "language"}
    return {
        "key": key,
        "language": language or container.language.code,
        "value": container.translator.translate(key, params or None, language=language),
    }
