from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from ...extensions import db
from ...models.enums import opposite_type
from ...models.item import Item
from ...models.match import PotentialMatch
from ...models.user import User

if TYPE_CHECKING:  # pragma: no cover
    from .service import MatchCandidate


class ItemStore:
    """Database access used by the matching engine.

    Reads return ORM rows in storage order (primary key ascending). The only
    write is :meth:`update_match_cache`, which replaces an item's cached
    match list as a whole.
    """

    def get_item(self, item_id, with_cache: bool = False) -> Item | None:
        opts = [joinedload(Item.category), joinedload(Item.reporter)]
        if with_cache:
            opts.append(joinedload(Item.potential_matches).joinedload(PotentialMatch.matched_item))
        return Item.query.options(*opts).filter(Item.id == item_id).first()

    def opposing_pool(self, item: Item) -> List[Item]:
        return (
            Item.query.options(joinedload(Item.category), joinedload(Item.reporter))
            .filter(
                Item.type == opposite_type(item.type),
                Item.status == "approved",
                Item.id != item.id,
            )
            .order_by(Item.id.asc())
            .all()
        )

    def approved_items(self) -> List[Item]:
        return Item.query.filter(Item.status == "approved").order_by(Item.id.asc()).all()

    def get_user(self, user_id) -> User | None:
        if user_id is None:
            return None
        return db.session.get(User, user_id)

    def match_notification_preference(self, user_id) -> bool:
        user = self.get_user(user_id)
        if user is None or user.email_on_match is None:
            return True
        return bool(user.email_on_match)

    def reset(self) -> None:
        """Discard the session state left behind by a failed statement."""
        db.session.rollback()

    def update_match_cache(self, item_id, matches: Sequence["MatchCandidate"]) -> None:
        try:
            PotentialMatch.query.filter(PotentialMatch.item_id == item_id).delete(synchronize_session="evaluate")
            for position, m in enumerate(matches):
                db.session.add(
                    PotentialMatch(
                        item_id=item_id,
                        matched_item_id=m.item.id,
                        score=int(m.score),
                        position=position,
                        matched_at=m.matched_at or datetime.now(timezone.utc),
                    )
                )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise


default_store = ItemStore()
