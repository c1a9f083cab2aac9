"""
Credentials attached to channel subscriptions.

Credentials are configuration: they are built once by the caller, shared
read-only between channels and never persisted.
"""

from pydantic import BaseModel, ConfigDict, Field


class AuthCredential(BaseModel):
    """
    Signed credential for CLOB channels.

    Serialized as the ``auth`` object of subscribe frames. Optional for the
    market and sports channels, mandatory for the user channel.
    """

    address: str = Field(default="", description="Signer address")
    signature: str = Field(default="", description="Signature over the payload")
    timestamp: str = Field(default="", description="Signing timestamp")
    nonce: str = Field(default="", description="Signing nonce")

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, str]:
        """Get the ``auth`` object, omitting empty fields."""
        return self.model_dump(exclude_defaults=True)

    def __repr__(self) -> str:
        """Hide the signature from logs."""
        return f"AuthCredential(address={self.address!r})"


class FeedToken(BaseModel):
    """Bearer token for the third-party price/comment feed."""

    token: str

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, str]:
        """Get the standalone auth frame."""
        return {"type": "auth", "token": self.token}

    def __repr__(self) -> str:
        """Hide the token from logs."""
        return "FeedToken(token=***)"


# Any credential a channel may carry
Credential = AuthCredential | FeedToken
