from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from shelf.forms.auth_forms import LoginForm
from shelf.services import user_service

bp = Blueprint("auth", __name__)


@bp.route("/csrf-token")
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})


@bp.route("/login", methods=["POST"])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return (
            jsonify(
                {
                    "error": "validation_error",
                    "message": "Username and password are required.",
                    "errors": form.errors,
                }
            ),
            422,
        )

    user = user_service.authenticate(form.username.data, form.password.data)
    if user is None:
        return (
            jsonify(
                {"error": "unauthorized", "message": "Invalid username or password."}
            ),
            401,
        )

    login_user(user)
    return jsonify(user.to_dict())


@bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"message": "You have been logged out."})


@bp.route("/me")
@login_required
def me():
    return jsonify(current_user.to_dict())
