from marshmallow import Schema, fields

from .item import ItemSchema


class MatchCandidateSchema(Schema):
    """A live match: the candidate item and its score."""

    item = fields.Nested(ItemSchema)
    score = fields.Int()
    matched_at = fields.DateTime(data_key="matchedAt")


class PotentialMatchSchema(Schema):
    """One entry of an item's cached match list."""

    matched_item_id = fields.Int(data_key="matchedItemId")
    matched_item = fields.Nested(ItemSchema, data_key="matchedItem", allow_none=True)
    score = fields.Int()
    position = fields.Int()
    matched_at = fields.DateTime(data_key="matchedAt")
