from flask import jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


@login_manager.unauthorized_handler
def _unauthorized():
    # JSON API: no redirect to a login page
    return jsonify({"ok": False, "error": "unauthorized"}), 401
