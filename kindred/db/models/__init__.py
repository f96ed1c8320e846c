from kindred.db.models.profile import Profile, PROFILE_STATUSES
from kindred.db.models.user_like import UserLike
from kindred.db.models.user_pass import UserPass
from kindred.db.models.friendship import Friendship
from kindred.db.models.block import Block
from kindred.db.models.friend_request import FriendRequest, REQUEST_STATUSES

__all__ = [
    "Profile",
    "PROFILE_STATUSES",
    "UserLike",
    "UserPass",
    "Friendship",
    "Block",
    "FriendRequest",
    "REQUEST_STATUSES",
]
