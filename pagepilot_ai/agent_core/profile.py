"""User profile and credential lookups used by form-filling capabilities.

The core treats the store as an opaque key/value lookup. ``InMemoryProfileStore``
is a reference implementation; persistent stores live in the host application.
"""

from __future__ import annotations

import time
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from pydantic import Field

from .schemas.base import BaseSchema

FORM_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "street",
    "city",
    "state",
    "zip_code",
    "country",
)


class StoredCredential(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    site: str
    username: str
    password: str
    created_at: float = Field(default_factory=time.time)
    last_used: Optional[float] = None


class UserProfile(BaseSchema):
    user_id: str = "unknown"

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

    credentials: List[StoredCredential] = Field(default_factory=list)


class ProfileStore(Protocol):
    """Protocol for profile and credential lookups."""

    async def get_form_data(self) -> Dict[str, Optional[str]]: ...

    async def get_credential_for_site(self, site: str) -> Optional[StoredCredential]: ...

    async def mark_credential_used(self, credential_id: str) -> None: ...


class InMemoryProfileStore:
    """Profile store backed by a single in-memory ``UserProfile``."""

    def __init__(self, profile: Optional[UserProfile] = None) -> None:
        self._profile = profile or UserProfile()

    @property
    def profile(self) -> UserProfile:
        return self._profile

    async def get_form_data(self) -> Dict[str, Optional[str]]:
        return {name: getattr(self._profile, name) for name in FORM_FIELDS}

    async def get_credential_for_site(self, site: str) -> Optional[StoredCredential]:
        """Find a credential whose site matches ``site`` (case-insensitive, partial either way)."""
        site_lower = site.lower()
        if not site_lower:
            return None
        for cred in self._profile.credentials:
            cred_site = cred.site.lower()
            if site_lower in cred_site or cred_site in site_lower:
                return cred
        return None

    async def mark_credential_used(self, credential_id: str) -> None:
        for cred in self._profile.credentials:
            if cred.id == credential_id:
                cred.last_used = time.time()
                return

    def add_credential(self, site: str, username: str, password: str) -> StoredCredential:
        cred = StoredCredential(site=site, username=username, password=password)
        self._profile.credentials.append(cred)
        return cred
