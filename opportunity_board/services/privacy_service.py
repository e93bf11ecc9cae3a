"""
Privacy resolution for profile fields and participation records.

Every visibility decision goes through ``can_view``. Relationship facts are
looked up once per request and the lookup fails closed: when the friendship
query errors, the aborted transaction is rolled back and the viewer is
treated as a stranger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opportunity_board.errors import NotFoundError
from opportunity_board.models import (
    Application,
    Friendship,
    Participation,
    PrivacyLevel,
    User,
)

logger = logging.getLogger(__name__)

# Profile section -> (User override column, UserProfile attribute)
PROFILE_FIELDS = {
    "education": ("education_privacy", "education"),
    "experience": ("experience_privacy", "experience"),
    "skills": ("skills_privacy", "skills"),
    "contact_urls": ("contact_url_privacy", "contact_urls"),
}


@dataclass(frozen=True)
class ViewerContext:
    viewer_id: Optional[int]
    owner_id: int
    is_self: bool
    is_friend: bool


def can_view(level: PrivacyLevel, *, is_self: bool, is_friend: bool) -> bool:
    if is_self:
        return True
    level = PrivacyLevel(level)
    if level == PrivacyLevel.PUBLIC:
        return True
    if level == PrivacyLevel.FRIENDS_ONLY:
        return is_friend
    return False


def effective_field_level(user: User, field: str) -> PrivacyLevel:
    """Per-field override when set, else the user's general privacy level."""
    override_attr, _ = PROFILE_FIELDS[field]
    override = getattr(user, override_attr)
    if override is not None:
        return PrivacyLevel(override)
    return PrivacyLevel(user.privacy_level or PrivacyLevel.PUBLIC)


# ======================
# RELATIONSHIP FACTS
# ======================

def friend_ids_of(db: Session, user_id: int) -> Set[int]:
    rows = db.query(Friendship.user_id, Friendship.friend_id).filter(
        or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
    ).all()
    return {friend_id if owner == user_id else owner for owner, friend_id in rows}


def are_friends(db: Session, user_a: int, user_b: int) -> bool:
    return db.query(Friendship.id).filter(
        or_(
            (Friendship.user_id == user_a) & (Friendship.friend_id == user_b),
            (Friendship.user_id == user_b) & (Friendship.friend_id == user_a),
        )
    ).first() is not None


def safe_friend_ids(db: Session, viewer_id: Optional[int]) -> Set[int]:
    if viewer_id is None:
        return set()
    try:
        return friend_ids_of(db, viewer_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Friend lookup failed for viewer_id=%s, denying friends-only content: %s", viewer_id, exc)
        return set()


def resolve_viewer(db: Session, viewer_id: Optional[int], owner_id: int) -> ViewerContext:
    if viewer_id is None:
        return ViewerContext(viewer_id=None, owner_id=owner_id, is_self=False, is_friend=False)
    if viewer_id == owner_id:
        return ViewerContext(viewer_id=viewer_id, owner_id=owner_id, is_self=True, is_friend=False)
    try:
        is_friend = are_friends(db, viewer_id, owner_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Friendship lookup failed (viewer_id=%s, owner_id=%s), denying friends-only content: %s",
            viewer_id,
            owner_id,
            exc,
        )
        is_friend = False
    return ViewerContext(viewer_id=viewer_id, owner_id=owner_id, is_self=False, is_friend=is_friend)


# ======================
# PROFILE
# ======================

def visible_profile_sections(user: User, ctx: ViewerContext) -> Dict[str, List[Any]]:
    profile = user.profile
    sections = {}
    for field, (_, profile_attr) in PROFILE_FIELDS.items():
        entries = list(getattr(profile, profile_attr, None) or []) if profile else []
        level = effective_field_level(user, field)
        sections[field] = entries if can_view(level, is_self=ctx.is_self, is_friend=ctx.is_friend) else []
    return sections


def build_profile_view(db: Session, *, viewer_id: Optional[int], owner_id: int) -> Dict[str, Any]:
    owner = db.query(User).filter(User.id == owner_id, User.is_active.is_(True)).first()
    if not owner:
        raise NotFoundError("User not found")

    ctx = resolve_viewer(db, viewer_id, owner_id)
    sections = visible_profile_sections(owner, ctx)

    participations = [
        {
            "id": p.id,
            "year": p.year,
            "feedback": p.feedback,
            "opportunity": _opportunity_summary(p.opportunity),
        }
        for p in sorted(owner.participations, key=lambda p: p.year, reverse=True)
        if can_view(p.privacy_level, is_self=ctx.is_self, is_friend=ctx.is_friend)
    ]

    friends_count = db.query(Friendship.id).filter(
        or_(Friendship.user_id == owner_id, Friendship.friend_id == owner_id)
    ).count()
    applications_count = db.query(Application.id).filter(Application.user_id == owner_id).count()

    profile = owner.profile
    return {
        "id": owner.id,
        "first_name": owner.first_name,
        "last_name": owner.last_name,
        "profile_image": owner.profile_image,
        "bio": owner.bio,
        "headline": profile.headline if profile else None,
        "location": profile.location if profile else None,
        **sections,
        "participations": participations,
        "is_self": ctx.is_self,
        "is_friend": ctx.is_friend,
        "stats": {
            "participations_count": len(owner.participations),
            "applications_count": applications_count,
            "friends_count": friends_count,
        },
    }


# ======================
# PARTICIPATIONS
# ======================

def _opportunity_summary(opportunity) -> Optional[Dict[str, Any]]:
    if opportunity is None:
        return None
    organization = opportunity.organization
    return {
        "id": opportunity.id,
        "title": opportunity.title,
        "start_date": opportunity.start_date.isoformat() if opportunity.start_date else None,
        "end_date": opportunity.end_date.isoformat() if opportunity.end_date else None,
        "organization": {
            "id": organization.id,
            "name": organization.name,
            "logo": organization.logo,
        } if organization else None,
    }


def _user_summary(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "profile_image": user.profile_image,
    }


def _visible_to(viewer_id: Optional[int], friend_ids: Set[int], participation: Participation) -> bool:
    is_self = viewer_id is not None and participation.user_id == viewer_id
    return can_view(
        participation.privacy_level,
        is_self=is_self,
        is_friend=participation.user_id in friend_ids,
    )


def filter_participations(
    viewer_id: Optional[int],
    friend_ids: Set[int],
    participations: Iterable[Participation],
) -> List[Participation]:
    return [p for p in participations if _visible_to(viewer_id, friend_ids, p)]


def list_user_participations(
    db: Session,
    *,
    viewer_id: Optional[int],
    owner_id: int,
) -> List[Dict[str, Any]]:
    """
    Participations of ``owner_id`` visible to the viewer, each carrying the
    other users' participations in the same opportunity that the viewer may
    also see. Every nested record is judged against its own owner.
    """
    owner = db.query(User).filter(User.id == owner_id, User.is_active.is_(True)).first()
    if not owner:
        raise NotFoundError("User not found")

    friend_ids = safe_friend_ids(db, viewer_id)
    own_rows = (
        db.query(Participation)
        .filter(Participation.user_id == owner_id)
        .order_by(Participation.year.desc(), Participation.id.desc())
        .all()
    )

    result = []
    for participation in filter_participations(viewer_id, friend_ids, own_rows):
        others = [
            p for p in participation.opportunity.participations
            if p.user_id != owner_id
        ]
        visible_others = sorted(
            filter_participations(viewer_id, friend_ids, others),
            key=lambda p: (p.year, p.id),
            reverse=True,
        )
        result.append({
            "id": participation.id,
            "year": participation.year,
            "privacy_level": PrivacyLevel(participation.privacy_level).value,
            "feedback": participation.feedback,
            "user": _user_summary(owner),
            "opportunity": {
                **_opportunity_summary(participation.opportunity),
                "participations": [
                    {
                        "id": p.id,
                        "year": p.year,
                        "privacy_level": PrivacyLevel(p.privacy_level).value,
                        "user": _user_summary(p.user),
                    }
                    for p in visible_others
                ],
            },
        })
    return result


def list_opportunity_participants(
    db: Session,
    *,
    viewer_id: Optional[int],
    opportunity_id: int,
) -> List[Dict[str, Any]]:
    friend_ids = safe_friend_ids(db, viewer_id)
    rows = (
        db.query(Participation)
        .filter(Participation.opportunity_id == opportunity_id)
        .order_by(Participation.year.desc(), Participation.id.desc())
        .all()
    )
    return [
        {
            "id": p.id,
            "year": p.year,
            "feedback": p.feedback,
            "user": _user_summary(p.user),
        }
        for p in filter_participations(viewer_id, friend_ids, rows)
    ]
