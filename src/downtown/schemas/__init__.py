"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentResponse, CommentThreadResponse
from .common import MessageResponse
from .post import PostResponse
from .token import PhoneLoginRequest, PhoneRequest, TokenPairResponse
from .user import BioUpdate, MyProfileResponse, UserResponse

__all__ = [
    "CommentCreate", "CommentResponse", "CommentThreadResponse",
    "MessageResponse",
    "PostResponse",
    "PhoneLoginRequest", "PhoneRequest", "TokenPairResponse",
    "BioUpdate", "MyProfileResponse", "UserResponse",
]
