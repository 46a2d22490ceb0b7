"""FamilyHub Database Models."""

from familyhub.models.user import Family, Profile
from familyhub.models.membership import FamilyMember
from familyhub.models.invite import FamilyInvite
from familyhub.models.post import Post, PostLike
from familyhub.models.comment import PostComment
from familyhub.models.event import Event, EventInvitation, EventRsvp, EventUpdate

__all__ = [
    "Family",
    "Profile",
    "FamilyMember",
    "FamilyInvite",
    "Post",
    "PostLike",
    "PostComment",
    "Event",
    "EventRsvp",
    "EventInvitation",
    "EventUpdate",
]
