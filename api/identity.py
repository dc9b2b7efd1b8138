"""Respondent identity resolution for the HTTP layer."""
from __future__ import annotations

from typing import Optional, Protocol

from fastapi import Header, HTTPException
from pydantic import BaseModel


class RespondentIdentity(BaseModel):  # What the interview core needs to know about the caller
    respondent_id: str
    email: str = ""


class IdentityProvider(Protocol):
    def resolve(self, respondent_id: Optional[str], email: Optional[str]) -> RespondentIdentity: ...


class HeaderIdentityProvider:
    """Trusts identity headers set by an upstream auth proxy."""

    def resolve(self, respondent_id: Optional[str], email: Optional[str]) -> RespondentIdentity:
        if not respondent_id or not respondent_id.strip():
            raise HTTPException(status_code=401, detail="Missing X-Respondent-Id header")
        return RespondentIdentity(respondent_id=respondent_id.strip(), email=(email or "").strip().lower())


_provider: IdentityProvider = HeaderIdentityProvider()


def current_respondent(
    x_respondent_id: Optional[str] = Header(default=None),
    x_respondent_email: Optional[str] = Header(default=None),
) -> RespondentIdentity:
    return _provider.resolve(x_respondent_id, x_respondent_email)


def current_auditor(x_auditor_id: Optional[str] = Header(default=None)) -> str:
    if not x_auditor_id or not x_auditor_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Auditor-Id header")
    return x_auditor_id.strip()


__all__ = ["HeaderIdentityProvider", "IdentityProvider", "RespondentIdentity", "current_auditor", "current_respondent"]
