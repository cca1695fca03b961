from datetime import datetime, timedelta, timezone

import pytest

from gigflow.bids.models import Bid
from gigflow.bids.service import create_bid, count_bids
from gigflow.gigs.models import Gig, GigStatus
from gigflow.gigs.service import (
    OpenGigFeed, close_gig, create_gig, delete_gig, get_gig, list_gigs_for_owner, list_open_gigs,
)
from gigflow.shared.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError


def _age(db, gig, minutes):
    gig.created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes)
    db.commit()


def test_create_gig_starts_open(db, make_user):
    owner = make_user("Carol")
    gig = create_gig(db, owner.id, "  Logo design ", "Need a logo", 500)
    assert gig.status == GigStatus.OPEN
    assert gig.title == "Logo design"
    assert gig.budget == 500.0
    assert gig.created_at is not None


@pytest.mark.parametrize("title,description,budget", [
    ("", "desc", 10),
    ("   ", "desc", 10),
    ("title", "", 10),
    ("title", "desc", 0),
    ("title", "desc", -5),
    ("title", "desc", float("nan")),
    ("title", "desc", "100"),
])
def test_create_gig_validation(db, make_user, title, description, budget):
    owner = make_user("Carol")
    with pytest.raises(ValidationError):
        create_gig(db, owner.id, title, description, budget)
    assert db.query(Gig).count() == 0


def test_close_gig(db, make_user):
    owner = make_user("Carol")
    gig = create_gig(db, owner.id, "Site", "Build a site", 900)
    closed = close_gig(db, gig.id, owner.id)
    assert closed.status == GigStatus.CLOSED

    with pytest.raises(InvalidStateError):
        close_gig(db, gig.id, owner.id)


def test_close_gig_errors(db, make_user):
    owner, other = make_user("Carol"), make_user("Mallory")
    gig = create_gig(db, owner.id, "Site", "Build a site", 900)
    with pytest.raises(NotFoundError):
        close_gig(db, "missing", owner.id)
    with pytest.raises(AuthorizationError):
        close_gig(db, gig.id, other.id)
    db.refresh(gig)
    assert gig.status == GigStatus.OPEN


def test_delete_gig_removes_its_bids(db, make_user):
    owner, fl = make_user("Carol"), make_user("Fred", "freelancer")
    gig = create_gig(db, owner.id, "Site", "Build a site", 900)
    create_bid(db, gig.id, fl.id, "I can do it", 800)
    gig_id = gig.id

    delete_gig(db, gig_id, owner.id)

    assert db.get(Gig, gig_id) is None
    assert db.query(Bid).filter(Bid.gig_id == gig_id).count() == 0


def test_delete_closed_gig_allowed_assigned_refused(db, make_user):
    owner, other = make_user("Carol"), make_user("Mallory")
    closed = create_gig(db, owner.id, "Old", "old gig", 100)
    close_gig(db, closed.id, owner.id)
    delete_gig(db, closed.id, owner.id)

    assigned = create_gig(db, owner.id, "Taken", "taken gig", 100)
    assigned.status = GigStatus.ASSIGNED
    db.commit()
    with pytest.raises(AuthorizationError):
        delete_gig(db, assigned.id, other.id)
    with pytest.raises(InvalidStateError):
        delete_gig(db, assigned.id, owner.id)
    assert db.get(Gig, assigned.id) is not None


def test_list_open_gigs_newest_first_with_counts(db, make_user):
    owner, f1, f2 = make_user("Carol"), make_user("Fred", "freelancer"), make_user("Gina", "freelancer")
    old = create_gig(db, owner.id, "Old gig", "d", 100)
    new = create_gig(db, owner.id, "New gig", "d", 100)
    closed = create_gig(db, owner.id, "Closed gig", "d", 100)
    _age(db, old, 30)
    _age(db, new, 5)
    close_gig(db, closed.id, owner.id)
    create_bid(db, old.id, f1.id, "me", 90)
    create_bid(db, old.id, f2.id, "me too", 95)

    rows = list(list_open_gigs(db))
    assert [r.gig.title for r in rows] == ["New gig", "Old gig"]
    assert [r.bid_count for r in rows] == [0, 2]
    assert rows[0].owner_name == "Carol"
    assert count_bids(db, old.id) == 2


def test_list_open_gigs_search(db, make_user):
    owner = make_user("Carol")
    create_gig(db, owner.id, "Python backend", "d", 100)
    create_gig(db, owner.id, "PYTHON scraper", "d", 100)
    create_gig(db, owner.id, "Logo", "d", 100)
    create_gig(db, owner.id, "100% remote", "d", 100)

    assert sorted(r.gig.title for r in list_open_gigs(db, "python")) == ["PYTHON scraper", "Python backend"]
    assert [r.gig.title for r in list_open_gigs(db, "%")] == ["100% remote"]
    assert list(list_open_gigs(db, "_")) == []
    assert len(list(list_open_gigs(db, "   "))) == 4


def test_open_gig_feed_is_restartable(db, make_user):
    owner = make_user("Carol")
    create_gig(db, owner.id, "First", "d", 100)
    feed = list_open_gigs(db)
    assert isinstance(feed, OpenGigFeed)
    assert [r.gig.title for r in feed] == ["First"]

    create_gig(db, owner.id, "Second", "d", 100)
    assert sorted(r.gig.title for r in feed) == ["First", "Second"]


def test_get_gig_and_owner_listing(db, make_user):
    owner, other = make_user("Carol"), make_user("Dan")
    gig = create_gig(db, owner.id, "Site", "d", 100)
    closed = create_gig(db, owner.id, "Gone", "d", 100)
    close_gig(db, closed.id, owner.id)
    create_gig(db, other.id, "Not mine", "d", 100)

    detail = get_gig(db, gig.id)
    assert detail.gig.id == gig.id and detail.bid_count == 0 and detail.owner_email == owner.email
    with pytest.raises(NotFoundError):
        get_gig(db, "missing")

    mine = list_gigs_for_owner(db, owner.id)
    assert {r.gig.title for r in mine} == {"Site", "Gone"}
