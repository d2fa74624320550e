"""
Social auth schemas for request validation and response serialization.

- Login outcome
- Profiles and contacts
- Status updates
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from socialauth.core.services.oauth import Contact, Profile


class MessageResponse(BaseModel):
    """Generic message response."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"message": "Operation completed successfully", "success": True}
        }
    )

    message: str
    success: bool = True


class LoginResponse(BaseModel):
    """Returned by login when the provider needs no browser redirect."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"provider_id": "openid"}}
    )

    provider_id: Annotated[str, Field(description="Selected provider id")]


class ProfileResponse(BaseModel):
    """Response schema for a user profile."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "provider_id": "google",
                "validated_id": "110248495921238986420",
                "first_name": "Jane",
                "last_name": "Doe",
                "full_name": "Jane Doe",
                "display_name": None,
                "email": "jane@example.com",
                "gender": None,
                "dob": None,
                "country": None,
                "language": "en",
                "location": None,
                "profile_image_url": "https://lh3.googleusercontent.com/a/photo.jpg",
            }
        },
    )

    provider_id: str
    validated_id: str
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    gender: str | None = None
    dob: str | None = None
    country: str | None = None
    language: str | None = None
    location: str | None = None
    profile_image_url: str | None = None

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        data: dict[str, Any] = profile.to_dict()
        data.pop("raw_data", None)
        return cls(**data)


class ContactResponse(BaseModel):
    """Response schema for one imported contact."""

    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    other_emails: list[str] = []
    profile_url: str | None = None

    @classmethod
    def from_contact(cls, contact: Contact) -> "ContactResponse":
        data: dict[str, Any] = contact.to_dict()
        data.pop("raw_data", None)
        return cls(**data)


class ContactListResponse(BaseModel):
    """Response schema for contact import."""

    provider_id: str
    count: int
    contacts: list[ContactResponse]


class StatusUpdateRequest(BaseModel):
    """Request schema for posting a status message."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"status": "Signed in with SocialAuth!"}}
    )

    status: Annotated[
        str, Field(min_length=1, max_length=5000, description="Status message to post")
    ]


class StatusResponse(BaseModel):
    """Response schema for the stored status message."""

    status: str | None = None


__all__ = [
    "MessageResponse",
    "LoginResponse",
    "ProfileResponse",
    "ContactResponse",
    "ContactListResponse",
    "StatusUpdateRequest",
    "StatusResponse",
]
