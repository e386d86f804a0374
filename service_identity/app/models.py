"""
Identity data models.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserInfo(BaseModel):
    """Identity of the user an access token was issued to.

    Fields not listed here are kept as extra attributes. ``partner_url`` and
    ``instance`` are filled in by the client after parsing; instances are
    frozen once returned.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    sub: Optional[str] = None
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    preferred_username: Optional[str] = None
    nickname: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    email_verified: Optional[bool] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    zoneinfo: Optional[str] = None
    locale: Optional[str] = None
    user_type: Optional[str] = None
    language: Optional[str] = None
    active: Optional[bool] = None
    utc_offset: Optional[int] = Field(default=None, alias="utcOffset")
    updated_at: Optional[str] = None
    photos: Optional[Dict[str, Any]] = None

    urls: Optional[Dict[str, str]] = None

    partner_url: Optional[str] = Field(default=None, alias="partnerUrl")
    instance: Optional[str] = None
