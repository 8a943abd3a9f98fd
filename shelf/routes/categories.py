from flask import Blueprint, Response, jsonify, request
from flask_login import login_required, current_user

from shelf.errors import ShelfError, ValidationError
from shelf.forms.category_forms import CategoryForm
from shelf.models.media import CATEGORIZED_MODELS
from shelf.services import category_service
from shelf.services.category_service import UNSET

bp = Blueprint("categories", __name__)


@bp.errorhandler(ShelfError)
def handle_shelf_error(error):
    return jsonify(error.to_dict()), error.status_code


def _node_to_dict(node) -> dict:
    data = node.category.to_dict()
    data["book_count"] = node.book_count
    data["total_book_count"] = node.total_book_count
    data["children"] = [_node_to_dict(child) for child in node.children]
    return data


def _coerce_id(value, field: str) -> int | None:
    """Turn a JSON or query-string id into an int; None and "" mean no id."""
    if value is None or value == "" or value == "null":
        return None
    # bool is an int subclass; floats would be truncated by int().
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    raise ValidationError(f"Invalid {field}.", {field: ["Must be an integer id."]})


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Expected a JSON object body.")
    return body


def _validated_form() -> CategoryForm:
    form = CategoryForm()
    if not form.validate_on_submit():
        raise ValidationError("Invalid category.", form.errors)
    return form


@bp.route("/")
@login_required
def list_categories():
    categories = category_service.list_categories(
        current_user.id, media_type=request.args.get("media_type") or None
    )
    counts = category_service.count_items(current_user.id)
    empty = {model.__tablename__: 0 for model in CATEGORIZED_MODELS}
    return jsonify(
        [{**c.to_dict(), "counts": counts.get(c.id, empty)} for c in categories]
    )


@bp.route("/children")
@login_required
def list_children():
    parent_id = _coerce_id(request.args.get("parent_id"), "parent_id")
    children = category_service.list_children(current_user.id, parent_id)
    return jsonify([c.to_dict() for c in children])


@bp.route("/tree")
@login_required
def tree():
    nodes = category_service.get_tree(current_user.id)
    return jsonify([_node_to_dict(node) for node in nodes])


@bp.route("/tree.txt")
@login_required
def tree_text():
    return Response(
        category_service.render_tree_text(current_user.id),
        content_type="text/plain; charset=utf-8",
    )


@bp.route("/search")
@login_required
def search():
    parent_id = UNSET
    if "parent_id" in request.args:
        parent_id = _coerce_id(request.args["parent_id"], "parent_id")
    categories = category_service.search_categories(
        current_user.id, request.args.get("q") or None, parent_id
    )
    return jsonify([c.to_dict() for c in categories])


@bp.route("/by-path/<path>")
@login_required
def get_by_path(path):
    category = category_service.get_category_by_path(current_user.id, path)
    return jsonify(category.to_dict())


@bp.route("/<int:category_id>")
@login_required
def get_category(category_id):
    category = category_service.get_category(current_user.id, category_id)
    return jsonify(category.to_dict())


@bp.route("/<int:category_id>/path")
@login_required
def get_path(category_id):
    lineage = category_service.get_path(current_user.id, category_id)
    return jsonify([c.to_dict() for c in lineage])


@bp.route("/paths", methods=["POST"])
@login_required
def get_paths():
    ids = _json_body().get("ids")
    if not isinstance(ids, list):
        raise ValidationError("Invalid ids.", {"ids": ["Must be a list of ids."]})
    ids = [_coerce_id(value, "ids") for value in ids]
    found = category_service.get_paths_for_ids(
        current_user.id, [i for i in ids if i is not None]
    )
    return jsonify({str(cid): c.to_dict() for cid, c in found.items()})


@bp.route("/", methods=["POST"])
@login_required
def create_category():
    body = _json_body()
    form = _validated_form()
    category = category_service.create_category(
        current_user.id,
        form.name.data,
        _coerce_id(body.get("parent_id"), "parent_id"),
        media_type=body.get("media_type"),
    )
    return jsonify(category.to_dict()), 201


@bp.route("/<int:category_id>", methods=["PATCH"])
@login_required
def update_category(category_id):
    body = _json_body()
    form = _validated_form()
    parent_id = UNSET
    if "parent_id" in body:
        parent_id = _coerce_id(body["parent_id"], "parent_id")
    category = category_service.update_category(
        current_user.id,
        category_id,
        form.name.data,
        parent_id,
        media_type=body.get("media_type", UNSET),
    )
    return jsonify(category.to_dict())


@bp.route("/<int:category_id>", methods=["DELETE"])
@login_required
def delete_category(category_id):
    category = category_service.delete_category(current_user.id, category_id)
    return jsonify(category.to_dict())
