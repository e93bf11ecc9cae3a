# opportunity_board/api/__init__.py
# This file makes the api directory a Python package.

from . import admin
from . import applications
from . import auth
from . import categories
from . import cron
from . import friends
from . import messages
from . import notification
from . import opportunities
from . import organizations
from . import participations
from . import profile
from . import telegram
from . import users

__all__ = [
    "auth",
    "users",
    "friends",
    "organizations",
    "categories",
    "opportunities",
    "participations",
    "applications",
    "profile",
    "notification",
    "messages",
    "admin",
    "cron",
    "telegram",
]
