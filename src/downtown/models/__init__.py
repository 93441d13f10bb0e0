"""SQLAlchemy models for the downtown application."""

from .block import CommentBlock, PostBlock, UserBlock
from .comment import ActiveComment, Comment, CommentClosure, CommentState, DeletedComment
from .like import PostLike, UserLike
from .phone_authorization import PhoneAuthorization
from .post import AgeRange, Post, PostImage, PostType
from .town import Town
from .user import IdVerificationType, Sex, User, VerificationStatus

__all__ = [
    "CommentBlock", "PostBlock", "UserBlock",
    "ActiveComment", "Comment", "CommentClosure", "CommentState", "DeletedComment",
    "PostLike", "UserLike",
    "PhoneAuthorization",
    "AgeRange", "Post", "PostImage", "PostType",
    "Town",
    "IdVerificationType", "Sex", "User", "VerificationStatus",
]
