from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from openwrite.schemas.base import CamelModel, not_null
from openwrite.schemas.enums import AIProviderName


class AIProviderCreate(CamelModel):
    provider: Optional[AIProviderName] = None
    api_key: Optional[str] = None
    key_label: Optional[str] = Field(None, max_length=200)
    provider_user_id: Optional[str] = None
    is_default: bool = False
    usage_limit: Optional[int] = Field(None, ge=0)
    supported_models: Optional[List[str]] = None
    provider_config: Optional[Dict[str, Any]] = None


class AIProviderUpdate(CamelModel):
    api_key: Optional[str] = Field(None, min_length=1)
    key_label: Optional[str] = Field(None, max_length=200)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    usage_remaining: Optional[int] = Field(None, ge=0)
    supported_models: Optional[List[str]] = None
    provider_config: Optional[Dict[str, Any]] = None

    check_required = field_validator("api_key", "is_active", "is_default")(not_null)
