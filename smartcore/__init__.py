# -*- coding: utf-8 -*-
import json
import logging

import click
from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError

from .config import Config, ensure_instance
from .extensions import db, migrate, login_manager

# blueprints
from .auth import auth_bp
from .admin_mgmt import bp as admin_mgmt_bp
from .modules.payroll import bp as payroll_bp
from .modules.salaries import bp as salaries_bp
from .modules.advances import bp as advances_bp
from .modules.expenses import bp as expenses_bp
from .modules.finops_reports import bp as reports_bp
from .modules.tasks import bp as tasks_bp
from .modules.vendors import bp as vendors_bp


def create_app(config_object=Config):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    ensure_instance(app)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(levelname)s:%(name)s:%(message)s",
    )

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # --- blueprints ---
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_mgmt_bp)
    app.register_blueprint(payroll_bp)
    app.register_blueprint(salaries_bp)
    app.register_blueprint(advances_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(vendors_bp)

    # --- monthly payroll, for the external cron trigger ---
    @app.cli.command("generate-payroll")
    @click.option("--start", default=None, help="YYYY-MM-DD, defaults to the previous month")
    @click.option("--end", default=None, help="YYYY-MM-DD, required together with --start")
    def generate_payroll(start, end):
        from .payroll_engine import generate_for_period
        from .utils import opt_date

        try:
            result = generate_for_period(opt_date(start, "start"), opt_date(end, "end"))
        except ValueError as e:
            raise click.UsageError(str(e))
        except SQLAlchemyError as e:
            db.session.rollback()
            click.echo(json.dumps({"error": str(e)}))
            raise SystemExit(1)
        click.echo(json.dumps(result.to_dict()))

    @app.get("/")
    def home():
        return jsonify({"message": "SmartCore CRM API"})

    return app
