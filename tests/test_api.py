"""End-to-end marketplace flow over HTTP."""

import pytest


@pytest.fixture
def people(make_user, headers):
    carol = make_user("Carol", "client")
    fred = make_user("Fred", "freelancer")
    gina = make_user("Gina", "freelancer")
    return {name: (u, headers(u)) for name, u in (("carol", carol), ("fred", fred), ("gina", gina))}


def _post_gig(client, h, **over):
    body = {"title": "Landing page", "description": "One page site", "budget": 500, **over}
    return client.post("/gigs", json=body, headers=h)


def test_gig_routes_require_auth(client):
    r = client.post("/gigs", json={"title": "t", "description": "d", "budget": 1})
    assert r.status_code == 401
    assert r.json() == {"ok": False, "error": {"code": "unauthenticated", "message": "not authorized, no token", "details": None}}


def test_request_body_errors_use_the_envelope(client, people):
    _, h = people["carol"]
    r = _post_gig(client, h, budget=0)
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False and body["error"]["code"] == "validation_error"
    assert any("budget" in d["loc"] for d in body["error"]["details"])


def test_hire_flow(client, people):
    (carol, ch), (fred, fh), (gina, gh) = people["carol"], people["fred"], people["gina"]

    r = _post_gig(client, ch)
    assert r.status_code == 201
    gig = r.json()
    assert gig["status"] == "Open" and gig["owner_id"] == carol.id

    listing = client.get("/gigs", params={"search": "landing"}).json()["items"]
    assert [g["id"] for g in listing] == [gig["id"]]
    assert listing[0]["owner"]["name"] == "Carol" and listing[0]["bid_count"] == 0

    r1 = client.post("/bids", json={"gig_id": gig["id"], "message": "I can do it", "price": 400}, headers=fh)
    r2 = client.post("/bids", json={"gig_id": gig["id"], "message": "Me too", "price": 450}, headers=gh)
    assert r1.status_code == r2.status_code == 201
    b1, b2 = r1.json(), r2.json()
    assert b1["status"] == "Pending"

    # owners cannot bid on their own gig, freelancers cannot bid twice
    r = client.post("/bids", json={"gig_id": gig["id"], "message": "mine", "price": 1}, headers=ch)
    assert r.status_code == 403 and r.json()["error"]["code"] == "forbidden"
    r = client.post("/bids", json={"gig_id": gig["id"], "message": "again", "price": 1}, headers=fh)
    assert r.status_code == 400 and r.json()["error"]["code"] == "conflict"

    assert client.get(f"/bids/{gig['id']}", headers=fh).status_code == 403
    bids = client.get(f"/bids/{gig['id']}", headers=ch).json()["items"]
    assert {b["freelancer"]["name"] for b in bids} == {"Fred", "Gina"}

    assert client.patch(f"/bids/{b1['id']}/hire", headers=fh).status_code == 403
    r = client.patch(f"/bids/{b1['id']}/hire", headers=ch)
    assert r.status_code == 200
    assert r.json()["message"] == "freelancer hired successfully"
    assert r.json()["bid"]["status"] == "Hired"

    r = client.patch(f"/bids/{b2['id']}/hire", headers=ch)
    assert r.status_code == 400 and r.json()["error"]["code"] == "invalid_state"

    detail = client.get(f"/gigs/{gig['id']}").json()
    assert detail["status"] == "Assigned" and detail["bid_count"] == 2
    assert client.get("/gigs").json()["items"] == []

    mine = client.get("/bids/mine", headers=gh).json()["items"]
    assert mine[0]["status"] == "Rejected" and mine[0]["gig"]["title"] == "Landing page"
    assert client.get(f"/bids/check/{gig['id']}", headers=fh).json()["status"] == "Hired"

    r = client.post("/bids", json={"gig_id": gig["id"], "message": "late", "price": 1}, headers=fh)
    assert r.status_code == 400 and r.json()["error"]["code"] == "invalid_state"

    assert client.delete(f"/gigs/{gig['id']}", headers=ch).status_code == 400


def test_close_and_delete_gig(client, people):
    (_, ch), (_, fh) = people["carol"], people["fred"]
    gig = _post_gig(client, ch).json()

    assert client.get(f"/bids/check/{gig['id']}", headers=fh).json() is None

    r = client.patch(f"/gigs/{gig['id']}/status", json={"status": "Open"}, headers=ch)
    assert r.status_code == 400
    assert client.patch(f"/gigs/{gig['id']}/status", json={"status": "Closed"}, headers=fh).status_code == 403
    r = client.patch(f"/gigs/{gig['id']}/status", json={"status": "Closed"}, headers=ch)
    assert r.status_code == 200 and r.json()["status"] == "Closed"

    mine = client.get("/gigs/mine", headers=ch).json()["items"]
    assert [g["status"] for g in mine] == ["Closed"]

    assert client.delete(f"/gigs/{gig['id']}", headers=ch).json()["ok"] is True
    r = client.get(f"/gigs/{gig['id']}")
    assert r.status_code == 404 and r.json()["error"]["code"] == "not_found"


def test_profile_and_account_routes(client, people):
    (carol, ch), (fred, fh) = people["carol"], people["fred"]
    r = client.put("/users/profile", json={"name": "Carol B."}, headers=ch)
    assert r.status_code == 200 and r.json()["user"]["name"] == "Carol B."

    r = client.put("/users/profile", json={"email": fred.email}, headers=ch)
    assert r.status_code == 400 and r.json()["error"]["code"] == "conflict"

    assert client.delete(f"/users/{fred.id}", headers=ch).status_code == 403
    assert client.delete(f"/users/{carol.id}", headers=ch).status_code == 200
    # the token outlives the account but no longer resolves
    assert client.get("/auth/me", headers=ch).status_code == 401


def test_notification_stream_requires_auth(client):
    assert client.get("/notifications/stream").status_code == 401
