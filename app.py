import json
import logging
import os
import sys

import click
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate

from app_config import load_config, portfolio_collection_path
from models.database import db
from models.document import DocumentStore, DocumentStoreError
from models.contact import ContactSubmissionHandler, contact_bp
from models.portfolio import PortfolioHandler, portfolio_bp
from utils.email_service import init_email_service

migrate = Migrate()


def configure_logging(app):
    log_file = app.config.get('LOG_FILE')
    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    log_format = '%(asctime)s - %(levelname)s - %(message)s'

    if log_file:
        log_path = log_file if os.path.isabs(log_file) else os.path.join(
            os.path.dirname(os.path.abspath(__file__)), log_file
        )
        logging.basicConfig(filename=log_path, level=log_level, format=log_format)
    else:
        logging.basicConfig(level=log_level, format=log_format)
    app.logger.setLevel(log_level)


def register_commands(app):
    @app.cli.command('init-db')
    def init_db_command():
        """Create the document tables."""
        db.create_all()
        click.echo('[OK] Document tables created.')

    @app.cli.command('seed-portfolio')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def seed_portfolio_command(path):
        """Append each object in a JSON array file to the portfolio collection."""
        with open(path, 'r', encoding='utf-8') as f:
            items = json.load(f)
        if not isinstance(items, list):
            raise click.ClickException('Seed file must contain a JSON array of objects')

        store = app.config['DOCUMENT_STORE']
        collection = portfolio_collection_path(app.config['APP_ID'])
        added = 0
        for item in items:
            if not isinstance(item, dict):
                click.echo(f"[WARN] Skipping non-object entry: {item!r}")
                continue
            try:
                store.append_document(collection, item)
            except DocumentStoreError as e:
                raise click.ClickException(f"Failed to add portfolio item: {e}")
            added += 1
        click.echo(f"[OK] Added {added} portfolio item(s) to {collection}")


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'message': 'Not found.'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'message': 'Method not allowed.'}), 405


def create_app(config_overrides=None):
    """
    Build the Flask application.

    Raises whatever the store initialization raises; callers must not serve
    requests with a broken store connection.
    """
    app = Flask(__name__)
    load_config(app, config_overrides)
    configure_logging(app)

    origins = app.config['CORS_ORIGINS']
    if origins != '*':
        origins = [origin.strip() for origin in origins.split(',') if origin.strip()]
    CORS(app, resources={r"/api/*": {"origins": origins}})

    # Initialize the shared SQLAlchemy instance with this app
    db.init_app(app)
    migrate.init_app(app, db)

    # Create tables within app context
    with app.app_context():
        db.create_all()

    store = DocumentStore(db)
    mailer = init_email_service(app)
    app_id = app.config['APP_ID']

    app.config['DOCUMENT_STORE'] = store
    app.config['CONTACT_HANDLER'] = ContactSubmissionHandler(
        store, mailer, app_id, recipient=app.config['CONTACT_RECIPIENT']
    )
    app.config['PORTFOLIO_HANDLER'] = PortfolioHandler(store, app_id)

    app.register_blueprint(portfolio_bp, url_prefix='/api')
    app.register_blueprint(contact_bp, url_prefix='/api')

    @app.route('/healthz')
    def healthz():
        return 'ok', 200, {'Content-Type': 'text/plain'}

    register_error_handlers(app)
    register_commands(app)

    logging.info(
        f"Portfolio backend configured (App ID: {app_id}, "
        f"email notifications: {'enabled' if mailer else 'disabled'})"
    )
    return app


# Execute application
if __name__ == '__main__':
    try:
        app = create_app()
    except Exception as e:
        logging.basicConfig(level=logging.ERROR)
        logging.exception(f"Failed to initialize the document store: {e}")
        sys.exit(1)

    host = app.config['HOST']
    port = app.config['PORT']
    debug = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'

    print(f"Backend server running on http://localhost:{port}")
    print(f"App ID: {app.config['APP_ID']}")
    app.run(host=host, port=port, debug=debug)
