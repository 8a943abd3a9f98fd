from shelf.routes.auth import bp as auth_bp
from shelf.routes.categories import bp as categories_bp


def register_blueprints(app):
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(categories_bp, url_prefix="/categories")
