"""
AI provider credentials.

API keys are encrypted before they reach the database and never leave the
server again; responses carry only the short ``keyHash`` fingerprint.
"""

import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from openwrite.database import Database, get_database_instance
from openwrite.exceptions import EncryptionError
from openwrite.schemas.ai_provider import AIProviderCreate, AIProviderUpdate
from openwrite.security.encryption import encrypt_api_key, hash_api_key
from openwrite.security.session import verify_session
from openwrite.utils.serialization import serialize_row

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai-providers", tags=["ai-providers"])

SECRET_FIELDS = ("api_key", "access_token", "refresh_token")
JSON_FIELDS = ("supported_models", "provider_config")


def serialize_provider(provider: Dict) -> Dict:
    return serialize_row(provider, exclude=SECRET_FIELDS, parse_json=JSON_FIELDS)


def _encrypt(api_key: str) -> Dict:
    try:
        return {"api_key": encrypt_api_key(api_key), "key_hash": hash_api_key(api_key)}
    except EncryptionError as e:
        logger.error(f"Failed to encrypt API key: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store API key securely"
        )


@router.get("")
async def list_providers(
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    return {"providers": [serialize_provider(p) for p in db.facade.list_ai_providers(user["id"])]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_provider(
    payload: AIProviderCreate,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    api_key = (payload.api_key or "").strip()
    if not payload.provider or not api_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provider and API key are required"
        )
    if db.facade.get_ai_provider_by_type(user["id"], payload.provider) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A {payload.provider} provider is already configured"
        )

    data = payload.model_dump(exclude={"api_key"})
    data.update(_encrypt(api_key))
    provider_id = db.facade.create_ai_provider(user["id"], data)
    return {"success": True, "id": provider_id}


@router.get("/{provider_id}")
async def get_provider(
    provider_id: str,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    provider = db.facade.get_ai_provider(user["id"], provider_id)
    if provider is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
    return {"provider": serialize_provider(provider)}


@router.put("/{provider_id}")
async def update_provider(
    provider_id: str,
    payload: AIProviderUpdate,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    fields = payload.model_dump(exclude_unset=True)
    if "api_key" in fields:
        api_key = fields.pop("api_key").strip()
        if not api_key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="API key must not be empty")
        fields.update(_encrypt(api_key))

    if not db.facade.update_ai_provider(user["id"], provider_id, fields):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
    return {"success": True}


@router.delete("/{provider_id}")
async def delete_provider(
    provider_id: str,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    if not db.facade.delete_ai_provider(user["id"], provider_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
    return {"success": True}
