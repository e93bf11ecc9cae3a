from __future__ import annotations

import pytest

from opportunity_board.api.opportunities import create_participation, get_opportunity, list_participants
from opportunity_board.api.participations import get_participation_privacy, update_participation_privacy
from opportunity_board.errors import ConflictError, ForbiddenError, NotFoundError
from opportunity_board.models import Participation, PrivacyLevel
from opportunity_board.schemas import ParticipationCreate, ParticipationPrivacyUpdate


def _participate(db, user, opportunity, year=2023, level=PrivacyLevel.ONLY_ME):
    return create_participation(
        opportunity_id=opportunity.id,
        payload=ParticipationCreate(year=year, privacy_level=level),
        current_user=user,
        db=db,
    )


def test_participation_defaults_to_only_me(db_session, make_user, make_opportunity):
    user = make_user()
    opportunity = make_opportunity()

    result = create_participation(
        opportunity_id=opportunity.id,
        payload=ParticipationCreate(year=2024),
        current_user=user,
        db=db_session,
    )

    assert result["privacy_level"] == "ONLY_ME"


def test_duplicate_year_conflicts(db_session, make_user, make_opportunity):
    user = make_user()
    opportunity = make_opportunity()
    _participate(db_session, user, opportunity, year=2023)

    with pytest.raises(ConflictError) as exc_info:
        _participate(db_session, user, opportunity, year=2023)

    assert exc_info.value.status_code == 409
    # A different year is a separate record.
    _participate(db_session, user, opportunity, year=2024)
    assert db_session.query(Participation).count() == 2


def test_participation_for_unknown_opportunity(db_session, make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        create_participation(
            opportunity_id=999,
            payload=ParticipationCreate(year=2023),
            current_user=user,
            db=db_session,
        )


def test_only_owner_changes_privacy(db_session, make_user, make_opportunity):
    owner = make_user("Owner")
    intruder = make_user("Intruder")
    participation = _participate(db_session, owner, make_opportunity())
    update = ParticipationPrivacyUpdate(privacy_level=PrivacyLevel.PUBLIC)

    with pytest.raises(ForbiddenError):
        update_participation_privacy(participation_id=participation["id"], payload=update, current_user=intruder, db=db_session)
    with pytest.raises(ForbiddenError):
        get_participation_privacy(participation_id=participation["id"], current_user=intruder, db=db_session)

    result = update_participation_privacy(participation_id=participation["id"], payload=update, current_user=owner, db=db_session)
    assert result["privacy_level"] == "PUBLIC"
    assert get_participation_privacy(participation_id=participation["id"], current_user=owner, db=db_session) == {
        "id": participation["id"],
        "privacy_level": "PUBLIC",
    }


def test_participants_list_is_privacy_filtered(db_session, make_user, make_opportunity, befriend):
    viewer = make_user("Viewer")
    friend = make_user("Friend")
    stranger = make_user("Stranger")
    befriend(viewer, friend)
    opportunity = make_opportunity()
    _participate(db_session, friend, opportunity, level=PrivacyLevel.FRIENDS_ONLY)
    _participate(db_session, stranger, opportunity, level=PrivacyLevel.FRIENDS_ONLY)
    public = _participate(db_session, stranger, opportunity, year=2022, level=PrivacyLevel.PUBLIC)

    as_viewer = list_participants(opportunity_id=opportunity.id, viewer=viewer, db=db_session)
    assert sorted(p["user"]["first_name"] for p in as_viewer) == ["Friend", "Stranger"]

    anonymous = list_participants(opportunity_id=opportunity.id, viewer=None, db=db_session)
    assert [p["id"] for p in anonymous] == [public["id"]]

    detail = get_opportunity(opportunity_id=opportunity.id, viewer=viewer, db=db_session)
    assert [p["id"] for p in detail["participants"]] == [public["id"]]
