from flask import Blueprint, jsonify

from ...models.category import Category
from ...schemas.item import CategorySchema

bp = Blueprint("categories", __name__, url_prefix="/categories")


@bp.get("")
def list_categories():
    rows = Category.query.order_by(Category.name.asc()).all()
    return jsonify({"categories": CategorySchema(many=True).dump(rows)})
