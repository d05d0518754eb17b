"""Settings API routes.

Each route is one inbound settings event. Handlers return only after
the change is persisted and any chat session reset has finished, so a
client that re-renders on the response never shows unsaved state.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from research_assistant.enums import ApiKeyState, SettingsField
from research_assistant.settings import (
    APIKeyStatus,
    ApiKeyLockedError,
    ChangeResult,
    SettingsPersistenceError,
    SettingsStore,
)
from research_assistant.settings.defaults import get_available_models

router = APIRouter()


def get_store(request: Request) -> SettingsStore:
    """The plugin's settings store, created in the app lifespan."""
    return request.app.state.plugin.store


class ModelInfo(BaseModel):
    """Information about a single model."""
    id: str
    name: str
    endpoint: str
    description: str


class ModelsResponse(BaseModel):
    """Response for available models endpoint."""
    models: List[ModelInfo]


class SettingsResponse(BaseModel):
    """Effective settings values plus the display-safe API key status."""
    values: Dict[str, Any]
    api_key: APIKeyStatus


class FieldUpdate(BaseModel):
    """Raw value from a settings control."""
    value: Any = None


class APIKeyRequest(BaseModel):
    """Key text typed so far."""
    key: str


class APIKeyStateResponse(BaseModel):
    state: ApiKeyState


@router.get("", response_model=SettingsResponse)
async def get_settings(store: SettingsStore = Depends(get_store)):
    """Get current effective settings."""
    return SettingsResponse(values=store.effective_values(), api_key=store.api_key_status())


@router.get("/models", response_model=ModelsResponse)
async def get_models():
    """Get the models a conversation can default to."""
    return ModelsResponse(models=[ModelInfo(**m) for m in get_available_models()])


# API Key Management Endpoints

@router.get("/api-key", response_model=APIKeyStatus)
async def get_api_key_status(store: SettingsStore = Depends(get_store)):
    """Get API key status (masked, not plaintext)."""
    return store.api_key_status()


@router.put("/api-key/pending", response_model=APIKeyStateResponse)
async def set_pending_api_key(request: APIKeyRequest, store: SettingsStore = Depends(get_store)):
    """Hold the key being typed. Nothing is saved until it is confirmed."""
    try:
        state = store.set_pending_api_key(request.key)
    except ApiKeyLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return APIKeyStateResponse(state=state)


@router.delete("/api-key/pending", response_model=APIKeyStateResponse)
async def discard_pending_api_key(store: SettingsStore = Depends(get_store)):
    """Abandon the key being typed."""
    return APIKeyStateResponse(state=store.discard_pending_api_key())


@router.post("/api-key/confirm", response_model=ChangeResult)
async def confirm_api_key(store: SettingsStore = Depends(get_store)):
    """Save the pending key."""
    try:
        return await store.confirm_api_key()
    except SettingsPersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.delete("/api-key", response_model=ChangeResult)
async def remove_api_key(store: SettingsStore = Depends(get_store)):
    """Remove the saved key."""
    try:
        return await store.remove_api_key()
    except SettingsPersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))


# Field updates

@router.patch("/{field}", response_model=ChangeResult)
async def update_field(field: str, update: FieldUpdate, store: SettingsStore = Depends(get_store)):
    """Apply a single field change.

    Args:
        field: A settings field name other than the API key
        update: The raw control value; out-of-range input is normalised
    """
    valid_fields = [f.value for f in SettingsField if f is not SettingsField.API_KEY]
    if field not in valid_fields:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid field. Must be one of: {valid_fields}"
        )

    try:
        return await store.apply_change(field, update.value)
    except SettingsPersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
