# opportunity_board/models/__init__.py
# Import models in dependency order
from .user import User, UserProfile, PrivacyLevel
from .auth_token import PasswordResetToken, TwoFactorToken
from .organization import Organization
from .opportunity import Category, Opportunity, OpportunityStatus
from .social import Friendship, FriendRequest, FriendRequestStatus, Follow
from .engagement import Bookmark, OpportunityView, EventLog
from .application import ApplicationStatusType, Application
from .participation import Participation
from .notification import Notification, NotificationType
from .message import Conversation, ConversationParticipant, Message

__all__ = [
    "User",
    "UserProfile",
    "PrivacyLevel",
    "PasswordResetToken",
    "TwoFactorToken",
    "Organization",
    "Category",
    "Opportunity",
    "OpportunityStatus",
    "Friendship",
    "FriendRequest",
    "FriendRequestStatus",
    "Follow",
    "Bookmark",
    "OpportunityView",
    "EventLog",
    "ApplicationStatusType",
    "Application",
    "Participation",
    "Notification",
    "NotificationType",
    "Conversation",
    "ConversationParticipant",
    "Message",
]
