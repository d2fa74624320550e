from socialauth.core.schemas.socialauth import (
    ContactListResponse,
    ContactResponse,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    StatusResponse,
    StatusUpdateRequest,
)

__all__ = [
    "ContactListResponse",
    "ContactResponse",
    "LoginResponse",
    "MessageResponse",
    "ProfileResponse",
    "StatusResponse",
    "StatusUpdateRequest",
]
