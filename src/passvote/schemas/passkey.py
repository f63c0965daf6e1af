"""Passkey ceremony Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterOptionsRequest(BaseModel):
    """Request to start a passkey registration."""

    username: str = Field(..., min_length=1, max_length=128)
    display_name: str = Field(..., min_length=1, max_length=256)


class RegisterOptionsResponse(BaseModel):
    """Challenge material for a registration ceremony."""

    session_id: str
    challenge: str = Field(..., description="URL-safe base64 encoded 32-byte challenge")
    user_id: str
    username: str
    display_name: str
    expires_at: datetime


class RegisterVerifyRequest(BaseModel):
    """Result of the client-side registration ceremony."""

    session_id: str = Field(..., min_length=1)
    credential_id: str = Field(..., min_length=1)
    public_key: str = Field(..., min_length=1)
    username: str | None = Field(None, description="Must match the username the session was issued for")
    display_name: str | None = None
    wallet_address: str | None = Field(None, description="Wallet address bound to the identity if this registration creates it")


class RegisterVerifyResponse(BaseModel):
    success: bool = True
    user_id: str
    username: str
    display_name: str | None
    wallet_address: str | None = None
    created: bool = Field(..., description="True if a new identity was created")
    message: str = "Passkey registered"


class AuthenticateOptionsRequest(BaseModel):
    """Request to start a passkey authentication."""

    username: str | None = None


class AuthenticateOptionsResponse(BaseModel):
    session_id: str
    challenge: str = Field(..., description="URL-safe base64 encoded 32-byte challenge")
    expires_at: datetime


class AuthenticateVerifyRequest(BaseModel):
    """Result of the client-side authentication ceremony."""

    session_id: str = Field(..., min_length=1)
    credential_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)


class AuthenticateVerifyResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user_id: str
    username: str
    display_name: str | None
    wallet_address: str | None = None
    message: str = "Authenticated"
