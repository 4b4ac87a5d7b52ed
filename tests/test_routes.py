from lostfound.extensions import db
from lostfound.models import AppSetting, Item, PotentialMatch, User


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_create_item_starts_pending(client, category, make_user):
    user = make_user()
    resp = client.post(
        "/api/v1/items",
        json={
            "type": "lost",
            "itemName": "Black Wallet",
            "description": "leather wallet with cards",
            "location": "Library",
            "dateLostFound": "2024-01-10",
            "categoryId": category.id,
        },
        headers={"X-User-Id": str(user.id)},
    )
    assert resp.status_code == 201
    body = resp.get_json()["item"]
    assert body["status"] == "pending"
    assert body["category"] == "Wallets"
    assert body["reportedById"] == user.id


def test_create_item_validates_input(client):
    resp = client.post("/api/v1/items", json={"type": "misplaced", "itemName": ""})
    assert resp.status_code == 400
    details = resp.get_json()["details"]
    assert "type" in details
    assert "dateLostFound" in details


def test_create_item_rejects_unknown_category(client):
    resp = client.post(
        "/api/v1/items",
        json={"type": "found", "itemName": "Keys", "dateLostFound": "2024-01-10", "categoryId": 999},
    )
    assert resp.status_code == 400


def test_list_items_only_shows_approved(client, make_item):
    approved = make_item("lost")
    make_item("lost", status="pending")
    items = client.get("/api/v1/items").get_json()["items"]
    assert [it["id"] for it in items] == [approved.id]


def test_pending_item_hidden_from_public(client, make_item):
    pending = make_item("found", status="pending")
    assert client.get(f"/api/v1/items/{pending.id}").status_code == 404


def test_item_matches_endpoint(client, make_item, other_category):
    lost = make_item("lost")
    strong = make_item("found")
    make_item("found", category_id=other_category.id, location="Gym", item_name="Umbrella")  # 35

    resp = client.get(f"/api/v1/items/{lost.id}/matches")
    assert resp.status_code == 200
    matches = resp.get_json()["matches"]
    assert [m["item"]["id"] for m in matches] == [strong.id]
    assert matches[0]["score"] == 100


def test_score_endpoint(client, make_item):
    lost = make_item("lost")
    found = make_item("found", item_name="Wallet")
    resp = client.get(f"/api/v1/matches/score?lostItemId={lost.id}&foundItemId={found.id}")
    assert resp.get_json()["score"] == 90
    # Wrong orientation is rejected
    resp = client.get(f"/api/v1/matches/score?lostItemId={found.id}&foundItemId={lost.id}")
    assert resp.status_code == 400


def test_score_endpoint_hides_unapproved_items(client, admin_headers, make_item):
    lost = make_item("lost", status="pending")
    found = make_item("found")
    url = f"/api/v1/matches/score?lostItemId={lost.id}&foundItemId={found.id}"
    assert client.get(url).status_code == 400
    assert client.get(url, headers=admin_headers).get_json()["score"] == 100


def test_match_cache_hidden_for_unapproved_items(client, admin_headers, make_item):
    lost = make_item("lost")
    found = make_item("found")
    client.post("/api/v1/admin/matching/run", headers=admin_headers)

    public = client.get(f"/api/v1/matches/cache/{lost.id}").get_json()
    assert [m["matchedItemId"] for m in public["matches"]] == [found.id]

    found.status = "rejected"
    db.session.commit()
    assert client.get(f"/api/v1/matches/cache/{found.id}").status_code == 404
    # The stale entry pointing at the rejected item is filtered for the public
    assert client.get(f"/api/v1/matches/cache/{lost.id}").get_json()["matches"] == []
    admin_view = client.get(f"/api/v1/matches/cache/{lost.id}", headers=admin_headers).get_json()
    assert [m["matchedItemId"] for m in admin_view["matches"]] == [found.id]


def test_admin_routes_require_admin(client, make_user, make_item):
    student = make_user()
    item = make_item("lost", status="pending")
    resp = client.post(f"/api/v1/admin/items/{item.id}/approve", headers={"X-User-Id": str(student.id)})
    assert resp.status_code == 403
    assert client.post("/api/v1/admin/matching/run").status_code == 403


def test_approve_runs_matching_and_fills_cache(client, admin_headers, make_item, make_user, outbox):
    owner = make_user()
    found = make_item("found")
    lost = make_item("lost", status="pending", reported_by_id=owner.id)

    resp = client.post(f"/api/v1/admin/items/{lost.id}/approve", headers=admin_headers)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["matching"] == "done"
    assert body["item"]["status"] == "approved"
    assert body["item"]["matchCount"] == 1
    assert len(outbox) == 1
    assert outbox[0].recipients == [owner.email]

    cache = client.get(f"/api/v1/matches/cache/{lost.id}").get_json()["matches"]
    assert [(c["matchedItemId"], c["score"]) for c in cache] == [(found.id, 100)]


def test_approve_skips_matching_when_disabled(client, admin_headers, make_item):
    AppSetting.set_bool("features.auto_matching.enabled", False)
    make_item("found")
    lost = make_item("lost", status="pending")

    body = client.post(f"/api/v1/admin/items/{lost.id}/approve", headers=admin_headers).get_json()

    assert body["matching"] == "skipped"
    assert PotentialMatch.query.filter_by(item_id=lost.id).count() == 0


def test_reject_and_claim(client, admin_headers, make_item):
    pending = make_item("lost", status="pending")
    resp = client.post(
        f"/api/v1/admin/items/{pending.id}/reject", json={"reason": "Duplicate"}, headers=admin_headers
    )
    assert resp.get_json()["item"]["status"] == "rejected"
    assert resp.get_json()["item"]["adminNotes"] == "Duplicate"

    found = make_item("found")
    resp = client.post(
        f"/api/v1/admin/items/{found.id}/claim", json={"claimerName": "Sam"}, headers=admin_headers
    )
    assert resp.get_json()["item"]["status"] == "claimed"
    assert db.session.get(Item, found.id).claimed_by_name == "Sam"


def test_delete_item_removes_cache_rows_pointing_at_it(client, admin_headers, make_item):
    lost = make_item("lost")
    found = make_item("found")
    client.post("/api/v1/admin/matching/run", headers=admin_headers)
    assert PotentialMatch.query.count() == 2

    resp = client.delete(f"/api/v1/admin/items/{found.id}", headers=admin_headers)

    assert resp.get_json() == {"deleted": True, "id": found.id}
    assert PotentialMatch.query.count() == 0
    assert db.session.get(Item, lost.id) is not None


def test_batch_run_and_overview(client, admin_headers, make_item):
    make_item("lost")
    make_item("found")

    resp = client.post("/api/v1/admin/matching/run", headers=admin_headers)
    assert resp.get_json() == {"queued": False, "totalMatches": 2}

    overview = client.get("/api/v1/admin/matching", headers=admin_headers).get_json()
    assert overview["approved"] == {"lost": 1, "found": 1}
    assert overview["itemsWithMatches"] == 2
    assert len(overview["topMatches"]) == 1
    assert overview["topMatches"][0]["score"] == 100


def test_admin_creates_category(client, admin_headers):
    resp = client.post("/api/v1/admin/categories", json={"name": "Keys"}, headers=admin_headers)
    assert resp.status_code == 201
    assert client.post("/api/v1/admin/categories", json={"name": "Keys"}, headers=admin_headers).status_code == 409
    names = [c["name"] for c in client.get("/api/v1/categories").get_json()["categories"]]
    assert names == ["Keys"]


def test_user_can_opt_out_of_match_emails(client, make_user):
    user = make_user()
    resp = client.patch(
        f"/api/v1/users/{user.id}",
        json={"notificationPreferences": {"emailOnMatch": False}},
        headers={"X-User-Id": str(user.id)},
    )
    assert resp.status_code == 200
    assert resp.get_json()["user"]["notificationPreferences"]["emailOnMatch"] is False
    assert db.session.get(User, user.id).email_on_match is False


def test_user_cannot_edit_someone_else(client, make_user):
    a, b = make_user(), make_user()
    resp = client.patch(f"/api/v1/users/{b.id}", json={"firstName": "X"}, headers={"X-User-Id": str(a.id)})
    assert resp.status_code == 403


def test_register_login_and_bearer_token(client):
    resp = client.post(
        "/api/v1/auth/register",
        json={"email": "Sam@Campus.edu", "firstName": "Sam", "lastName": "Lee", "password": "correct-horse"},
    )
    assert resp.status_code == 201
    login = client.post("/api/v1/auth/login", json={"email": "sam@campus.edu", "password": "correct-horse"})
    assert login.status_code == 200
    token = login.get_json()["token"]
    uid = login.get_json()["id"]

    me = client.get(f"/api/v1/users/{uid}", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["email"] == "sam@campus.edu"

    bad = client.post("/api/v1/auth/login", json={"email": "sam@campus.edu", "password": "wrong-password"})
    assert bad.status_code == 401


def test_match_notification_listed_and_marked_read(client, admin_headers, make_item, make_user):
    owner = make_user()
    make_item("found")
    lost = make_item("lost", status="pending", reported_by_id=owner.id)
    client.post(f"/api/v1/admin/items/{lost.id}/approve", headers=admin_headers)

    headers = {"X-User-Id": str(owner.id)}
    notes = client.get("/api/v1/notifications", headers=headers).get_json()["notifications"]
    assert len(notes) == 1
    assert notes[0]["payload"]["kind"] == "match"

    resp = client.patch(f"/api/v1/notifications/{notes[0]['id']}/read", headers=headers)
    assert resp.get_json()["notification"]["read"] is True
