from __future__ import annotations

from datetime import datetime, timezone
import logging

from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models.notification import Notification
from . import emails
from .bus import publish

logger = logging.getLogger(__name__)


def notification_to_event(n: Notification) -> dict:
    return {
        "type": "notification",
        "notification": {
            "id": n.id,
            "title": n.title,
            "message": n.body,
            "createdAt": n.created_at.isoformat() if n.created_at else None,
            "read": bool(n.read_at),
            "payload": n.payload,
        },
    }


def _item_brief(it) -> dict:
    return {
        "id": it.id,
        "type": it.type,
        "itemName": it.item_name,
        "location": it.location,
        "dateLostFound": it.date_lost_found.isoformat() if it.date_lost_found else None,
    }


class MatchNotifier:
    """Tells a lost item's owner about a found item that may be theirs.

    Sends the match email and records an in-app notification, which is also
    pushed to any open SSE stream of the user. Errors are raised to the
    caller after the session has been rolled back.
    """

    def notify_match(self, user, lost_item, found_item, score: int) -> Notification:
        n = Notification(
            user_id=user.id,
            channel="email",
            title="Potential match found",
            body=f"A found item ‘{found_item.item_name}’ may match your lost ‘{lost_item.item_name}’ ({int(score)}% match).",
            payload={
                "kind": "match",
                "lostItemId": lost_item.id,
                "foundItemId": found_item.id,
                "score": int(score),
                "lost": _item_brief(lost_item),
                "found": _item_brief(found_item),
            },
        )
        try:
            emails.send(emails.match_found_email(user, lost_item, found_item, score))
            n.status = "sent"
            n.sent_at = datetime.now(timezone.utc)
            db.session.add(n)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        except Exception:
            # Keep a record of the failed delivery before surfacing the error
            db.session.rollback()
            n.status = "failed"
            db.session.add(n)
            db.session.commit()
            raise

        publish(int(user.id), notification_to_event(n))
        logger.info(
            "Notified user %s of match lost=%s found=%s score=%s",
            user.id, lost_item.id, found_item.id, score,
        )
        return n


def notify_claim_reviewed(claim, approved: bool) -> Notification | None:
    """Record and push the outcome of a claim review to the claimant.

    The email honours the claimant's ``email_on_claim`` preference. Failures
    are logged; the review itself has already been committed.
    """
    user = claim.claimant
    item = claim.item
    if user is None or item is None:
        return None
    action = "approved" if approved else "rejected"
    n = Notification(
        user_id=user.id,
        channel="inapp",
        title=f"Claim {action}",
        body=(
            f"Your claim for ‘{item.item_name}’ is approved. Please proceed to the office to collect the item."
            if approved
            else f"Your claim for ‘{item.item_name}’ was rejected."
        ),
        payload={"kind": "claim", "action": action, "itemId": int(item.id), "claimId": int(claim.id)},
        status="sent",
        sent_at=datetime.now(timezone.utc),
    )
    try:
        db.session.add(n)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Could not record claim notification for claim %s", claim.id)
        return None
    publish(int(user.id), notification_to_event(n))

    if user.email_on_claim is False:
        return n
    try:
        emails.send(emails.claim_reviewed_email(user, item, approved, claim.rejection_reason))
    except Exception:
        logger.exception("Claim %s email to user %s failed", claim.id, user.id)
    return n


default_notifier = MatchNotifier()
