"""Meta endpoints for localization and the status transition table."""
from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from taskflow.core.transitions import TRANSITIONS
from taskflow.dependencies import get_current_actor
from taskflow.localization.helpers import get_translation
from taskflow.localization.translations import TRANSLATIONS, get_available_locales
from taskflow.utils.permissions import Actor

router = APIRouter()


@router.get("/locales", response_model=Dict[str, str])
async def available_locales(
    actor: Actor = Depends(get_current_actor),
):
    """Return list of supported locales."""
    return get_available_locales()


@router.get("/translations/{locale}", response_model=Dict[str, str])
async def translations(
    locale: str,
    actor: Actor = Depends(get_current_actor),
):
    """Return translation bundle for locale."""
    bundle = TRANSLATIONS.get(locale.lower())
    if not bundle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=get_translation("errors.locale_not_supported", "en", requested_locale=locale),
        )
    return bundle


@router.get("/transitions", response_model=Dict[str, List[str]])
async def transitions():
    """Allowed next statuses for every status, as used by the board client."""
    return TRANSITIONS.as_dict()
