from .base import BaseRepository
from .profile_repo import profile_repo
from .like_repo import like_repo
from .pass_repo import pass_repo
from .friendship_repo import friendship_repo
from .block_repo import block_repo
from .friend_request_repo import friend_request_repo

__all__ = [
    "BaseRepository",
    "profile_repo",
    "like_repo",
    "pass_repo",
    "friendship_repo",
    "block_repo",
    "friend_request_repo",
]
