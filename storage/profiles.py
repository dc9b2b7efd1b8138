"""Supplier profile persistence for the admin view."""
from __future__ import annotations

from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, field_validator

from interview_session.errors import RecordNotFound, ValidationError
from interview_session.models import utcnow

from .sqlite import get_conn


class Profile(BaseModel):  # Immutable profile row
    model_config = ConfigDict(frozen=True)

    profile_id: str
    email: str
    company_name: str = ""
    role: str = "supplier"
    created_at: str
    updated_at: str


class ProfilePatch(BaseModel):
    """Explicit edit command; only the fields set here change."""

    company_name: Optional[str] = None
    role: Optional[str] = None

    @field_validator("company_name", "role")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    def is_empty(self) -> bool:
        return self.company_name is None and self.role is None


class ProfileStore:
    def upsert(self, email: str, company_name: str = "", role: str = "supplier") -> Profile:
        now = utcnow()
        with get_conn() as conn:
            conn.execute(
                """INSERT OR IGNORE INTO profiles (profile_id, email, company_name, role, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (uuid4().hex, email.strip().lower(), company_name, role, now, now),
            )
            row = conn.execute("SELECT * FROM profiles WHERE email = ?", (email.strip().lower(),)).fetchone()
        return Profile(**dict(row))

    def get(self, profile_id: str) -> Optional[Profile]:
        with get_conn() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE profile_id = ?", (profile_id,)).fetchone()
        return Profile(**dict(row)) if row else None

    def get_by_email(self, email: str) -> Optional[Profile]:
        with get_conn() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE email = ?", (email.strip().lower(),)).fetchone()
        return Profile(**dict(row)) if row else None

    def company_for(self, email: str) -> str:
        profile = self.get_by_email(email)
        return profile.company_name if profile else ""

    def search(self, text: Optional[str] = None) -> List[Profile]:
        """Profiles whose email or company contains ``text`` (case-insensitive)."""

        sql = "SELECT * FROM profiles"
        params: tuple = ()
        if text and text.strip():
            needle = f"%{text.strip().lower()}%"
            sql += " WHERE lower(email) LIKE ? OR lower(company_name) LIKE ?"
            params = (needle, needle)
        sql += " ORDER BY email"
        with get_conn() as conn:
            return [Profile(**dict(row)) for row in conn.execute(sql, params).fetchall()]

    def update_profile(self, profile_id: str, patch: ProfilePatch) -> Profile:
        if patch.is_empty():
            raise ValidationError("Nothing to update", code="empty_patch")
        current = self.get(profile_id)
        if current is None:
            raise RecordNotFound(f"Profile '{profile_id}' not found", code="profile_not_found")
        updated = current.model_copy(
            update={
                **patch.model_dump(exclude_none=True),
                "updated_at": utcnow(),
            }
        )
        with get_conn() as conn:
            conn.execute(
                "UPDATE profiles SET company_name = ?, role = ?, updated_at = ? WHERE profile_id = ?",
                (updated.company_name, updated.role, updated.updated_at, profile_id),
            )
        return updated


__all__ = ["Profile", "ProfilePatch", "ProfileStore"]
