# opportunity_board/schemas/__init__.py

# Auth schemas
from .auth import (
    Token,
    TwoFactorChallenge,
    RegisterRequest,
    LoginRequest,
    TwoFactorVerifyRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
    SecuritySettingsUpdate,
    MessageResponse,
)

# Profile and privacy schemas
from .user import (
    ProfileUpdate,
    UserProfileOut,
    PrivacyUpdate,
    FieldPrivacySettings,
    TelegramBindCode,
)

# Social schemas
from .social import FriendRequestCreate, FriendRequestResponse, FollowToggle

# Catalog schemas
from .catalog import (
    OrganizationCreate,
    OrganizationUpdate,
    CategoryCreate,
    CategoryUpdate,
    OpportunityCreate,
    OpportunityUpdate,
    RoleUpdate,
    ActiveUpdate,
)

# Engagement schemas
from .engagement import (
    BookmarkToggle,
    ApplyStatus,
    ApplyRequest,
    ApplicationConfirm,
    ParticipationCreate,
    ParticipationPrivacyUpdate,
)

# Direct message schemas
from .message import DirectMessageCreate, ConversationReply
