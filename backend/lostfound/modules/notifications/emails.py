from __future__ import annotations

from html import escape

from flask import current_app
from flask_mail import Message

from ...extensions import mail

_LAYOUT = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: #0d6efd; color: #fff; padding: 16px 24px;">
    <h1 style="margin: 0; font-size: 20px;">Campus Lost &amp; Found</h1>
  </div>
  <div style="padding: 24px;">{content}</div>
</div>
"""

_CARD = """\
<div style="border-left: 4px solid {color}; background: #f8f9fa; padding: 12px 16px; margin: 12px 0;">
  <h3 style="margin-top: 0;">{heading}</h3>
  <p><strong>{name}</strong></p>
  <p>{description}</p>
  <p><strong>{location_label}:</strong> {location}</p>
</div>
"""


def _card(heading: str, item, location_label: str, color: str) -> str:
    return _CARD.format(
        heading=escape(heading),
        name=escape(item.item_name or ""),
        description=escape(item.description or ""),
        location_label=location_label,
        location=escape(item.location or "Unknown"),
        color=color,
    )


def match_found_email(user, lost_item, found_item, score: int) -> Message:
    base = str(current_app.config.get("FRONTEND_BASE_URL") or "").rstrip("/")
    link = f"{base}/items/{found_item.id}"
    content = (
        "<h2>We Found a Potential Match!</h2>"
        f"<p>Hi <strong>{escape(user.display_name)}</strong>,</p>"
        "<p>A found item was reported that might be your lost item.</p>"
        + _card("Your Lost Item", lost_item, "Location", "#0d6efd")
        + _card(f"Potential Match ({int(score)}% match)", found_item, "Found at", "#198754")
        + f'<p><a href="{escape(link)}">View Found Item</a></p>'
        "<p>If this is your item, please contact the finder or submit a claim!</p>"
    )
    return Message(
        subject="Potential match found for your lost item!",
        recipients=[user.email],
        html=_LAYOUT.format(content=content),
        body=(
            f"Hi {user.display_name},\n\n"
            f"A found item '{found_item.item_name}' may match your lost '{lost_item.item_name}' "
            f"({int(score)}% match).\nView it here: {link}\n"
        ),
    )


def claim_reviewed_email(user, item, approved: bool, reason: str | None = None) -> Message:
    """Tell a claimant whether their ownership claim was accepted."""
    if approved:
        subject = "Your claim has been approved"
        content = (
            "<h2>Your Claim Was Approved</h2>"
            f"<p>Hi <strong>{escape(user.display_name)}</strong>,</p>"
            "<p>Your ownership claim for this item has been approved:</p>"
            + _card("Claimed Item", item, "Location", "#198754")
            + "<p>Please visit the lost and found office with your ID to collect it.</p>"
        )
        body = f"Hi {user.display_name},\n\nYour claim for '{item.item_name}' was approved. Please collect it at the office.\n"
    else:
        subject = "Update on your claim"
        why = escape(reason or "The proof provided was not sufficient.")
        content = (
            "<h2>Your Claim Was Not Approved</h2>"
            f"<p>Hi <strong>{escape(user.display_name)}</strong>,</p>"
            + _card("Item", item, "Location", "#dc3545")
            + f"<p><strong>Reason:</strong> {why}</p>"
        )
        body = f"Hi {user.display_name},\n\nYour claim for '{item.item_name}' was not approved. Reason: {reason or 'not given'}\n"
    return Message(subject=subject, recipients=[user.email], html=_LAYOUT.format(content=content), body=body)

def send(message: Message) -> None:
    mail.send(message)
