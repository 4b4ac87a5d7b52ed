import pytest

from lostfound.extensions import db
from lostfound.models import ClaimRequest, Item, Notification
from lostfound.modules.matching import find_matches


def claim_body(item_id, **kw):
    body = {
        "itemId": item_id,
        "description": "This is my black leather wallet, I lost it in the library.",
        "proofOfOwnership": "My student card is inside",
        "contactPhone": "555-0101",
    }
    body.update(kw)
    return body


@pytest.fixture
def student(make_user):
    return make_user(email="owner@campus.edu")


@pytest.fixture
def student_headers(student):
    return {"X-User-Id": str(student.id)}


@pytest.fixture
def found(make_item):
    return make_item("found")


def submit(client, headers, item_id, **kw):
    return client.post("/api/v1/claims", json=claim_body(item_id, **kw), headers=headers)


def test_submit_claim(client, student, student_headers, found):
    resp = submit(client, student_headers, found.id)
    assert resp.status_code == 201
    claim = resp.get_json()["claim"]
    assert claim["status"] == "pending"
    assert claim["statusLabel"] == "Pending Review"
    assert claim["claimantId"] == student.id
    assert claim["item"]["id"] == found.id
    assert claim["preferredContactMethod"] == "email"


def test_submit_claim_requires_login(client, found):
    assert client.post("/api/v1/claims", json=claim_body(found.id)).status_code == 401


def test_submit_claim_validates_input(client, student_headers, found):
    resp = submit(client, student_headers, found.id, description="mine", proofOfOwnership="")
    assert resp.status_code == 400
    details = resp.get_json()["details"]
    assert "description" in details
    assert "proofOfOwnership" in details


def test_submit_claim_checks_item(client, student_headers, make_item):
    lost = make_item("lost")
    pending = make_item("found", status="pending")
    claimed = make_item("found", status="claimed")
    assert submit(client, student_headers, lost.id).status_code == 400
    assert submit(client, student_headers, pending.id).status_code == 404
    assert submit(client, student_headers, claimed.id).status_code == 409
    assert submit(client, student_headers, 9999).status_code == 404


def test_one_open_claim_per_item(client, student_headers, found):
    assert submit(client, student_headers, found.id).status_code == 201
    assert submit(client, student_headers, found.id).status_code == 409


def test_students_only_list_their_own_claims(client, make_user, student, student_headers, admin_headers, found):
    other = make_user()
    submit(client, student_headers, found.id)
    submit(client, {"X-User-Id": str(other.id)}, found.id)

    mine = client.get("/api/v1/claims", headers=student_headers).get_json()["claims"]
    assert [c["claimantId"] for c in mine] == [student.id]

    everyone = client.get("/api/v1/claims?status=pending", headers=admin_headers).get_json()["claims"]
    assert len(everyone) == 2
    assert client.get("/api/v1/claims?status=lost", headers=admin_headers).status_code == 400


def test_claim_details_hidden_from_other_students(client, make_user, student_headers, found):
    claim_id = submit(client, student_headers, found.id).get_json()["claim"]["id"]
    other = make_user()
    assert client.get(f"/api/v1/claims/{claim_id}", headers=student_headers).status_code == 200
    assert client.get(f"/api/v1/claims/{claim_id}", headers={"X-User-Id": str(other.id)}).status_code == 404


def test_withdraw_claim(client, student_headers, found):
    claim_id = submit(client, student_headers, found.id).get_json()["claim"]["id"]
    resp = client.post(f"/api/v1/claims/{claim_id}/withdraw", headers=student_headers)
    assert resp.get_json()["claim"]["status"] == "withdrawn"
    assert client.post(f"/api/v1/claims/{claim_id}/withdraw", headers=student_headers).status_code == 409
    # A withdrawn claim no longer blocks a new one
    assert submit(client, student_headers, found.id).status_code == 201


def test_only_admins_review_claims(client, student_headers, found):
    claim_id = submit(client, student_headers, found.id).get_json()["claim"]["id"]
    resp = client.patch(f"/api/v1/claims/{claim_id}", json={"status": "approved"}, headers=student_headers)
    assert resp.status_code == 403


def test_approving_claim_marks_item_claimed(client, make_user, make_item, student, student_headers, admin_headers, found, outbox):
    rival = make_user()
    lost = make_item("lost")
    claim_id = submit(client, student_headers, found.id).get_json()["claim"]["id"]
    rival_id = submit(client, {"X-User-Id": str(rival.id)}, found.id).get_json()["claim"]["id"]
    assert [m.item.id for m in find_matches(lost, min_score=0)] == [found.id]

    resp = client.patch(
        f"/api/v1/claims/{claim_id}",
        json={"status": "approved", "adminNotes": "ID checked"},
        headers=admin_headers,
    )

    assert resp.status_code == 200
    assert resp.get_json()["claim"]["status"] == "approved"
    item = db.session.get(Item, found.id)
    assert item.status == "claimed"
    assert item.claimed_by_email == student.email
    assert item.claimed_by_phone == "555-0101"
    assert item.claimed_at is not None

    rival_claim = db.session.get(ClaimRequest, rival_id)
    assert rival_claim.status == "rejected"
    assert rival_claim.rejection_reason == "Another claim was approved for this item"

    # The claimed item has left the matching pool
    assert find_matches(lost, min_score=0) == []

    assert [m.recipients for m in outbox] == [[student.email]]
    notes = Notification.query.filter_by(user_id=student.id).all()
    assert [n.payload["action"] for n in notes] == ["approved"]

    again = client.patch(f"/api/v1/claims/{claim_id}", json={"status": "rejected"}, headers=admin_headers)
    assert again.status_code == 409


def test_rejecting_claim_respects_email_preference(client, make_user, admin_headers, found, outbox):
    quiet = make_user(email_on_claim=False)
    headers = {"X-User-Id": str(quiet.id)}
    claim_id = submit(client, headers, found.id).get_json()["claim"]["id"]

    resp = client.patch(
        f"/api/v1/claims/{claim_id}",
        json={"status": "rejected", "rejectionReason": "Card name does not match"},
        headers=admin_headers,
    )

    claim = resp.get_json()["claim"]
    assert claim["status"] == "rejected"
    assert claim["rejectionReason"] == "Card name does not match"
    assert db.session.get(Item, found.id).status == "approved"
    assert outbox == []
    # The in-app notification is still recorded
    assert Notification.query.filter_by(user_id=quiet.id).count() == 1


def test_review_rejects_unknown_status(client, student_headers, admin_headers, found):
    claim_id = submit(client, student_headers, found.id).get_json()["claim"]["id"]
    resp = client.patch(f"/api/v1/claims/{claim_id}", json={"status": "withdrawn"}, headers=admin_headers)
    assert resp.status_code == 400


def test_deleting_item_removes_its_claims(client, student_headers, admin_headers, found):
    submit(client, student_headers, found.id)
    client.delete(f"/api/v1/admin/items/{found.id}", headers=admin_headers)
    assert ClaimRequest.query.count() == 0
