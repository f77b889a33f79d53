"""
Verified identity asserted by an external identity provider.

Not persisted; produced by the OAuth adapter and consumed by the federated
identity bridge.
"""

from __future__ import annotations

from pydantic import BaseModel


class FederatedIdentity(BaseModel):
    provider: str
    provider_user_id: str
    email: str
    email_verified: bool = True
    name: str = ""
    picture: str = ""
