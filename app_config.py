import os

from dotenv import load_dotenv

DEFAULT_APP_ID = 'default-app-id'


def _env_flag(name, default):
    return os.getenv(name, default).lower() == 'true'


def load_config(app, overrides=None):
    """Populate app.config from the .env file, the environment and overrides."""
    dotenv_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), '.env')
    load_dotenv(dotenv_path)

    # Document store credential; the local SQLite file is the development fallback
    app.config['SQLALCHEMY_DATABASE_URI'] = (
        os.getenv('DOCUMENT_STORE_URI')
        or os.getenv('SQLALCHEMY_DATABASE_URI')
        or 'sqlite:///portfolio.db'
    )
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    app.config['APP_ID'] = os.getenv('APP_ID', DEFAULT_APP_ID)
    app.config['HOST'] = os.getenv('HOST', '0.0.0.0')
    app.config['PORT'] = int(os.getenv('PORT', '3001'))
    app.config['CORS_ORIGINS'] = os.getenv('CORS_ORIGINS', '*')

    app.config['LOG_FILE'] = os.getenv('LOG_FILE', 'portfolio_backend.log')
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')

    # Mail transport is optional: without MAIL_PASSWORD no notification is sent
    app.config['MAIL_SERVER'] = os.getenv('MAIL_SERVER', 'smtp.gmail.com')
    app.config['MAIL_PORT'] = int(os.getenv('MAIL_PORT', '587'))
    app.config['MAIL_USE_TLS'] = _env_flag('MAIL_USE_TLS', 'True')
    app.config['MAIL_USE_SSL'] = _env_flag('MAIL_USE_SSL', 'False')
    app.config['MAIL_USERNAME'] = os.getenv('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.getenv('MAIL_PASSWORD')
    app.config['MAIL_DEFAULT_SENDER'] = os.getenv('MAIL_DEFAULT_SENDER')
    app.config['MAIL_TIMEOUT'] = float(os.getenv('MAIL_TIMEOUT', '30'))
    app.config['CONTACT_RECIPIENT'] = os.getenv('CONTACT_RECIPIENT')

    if overrides:
        app.config.update(overrides)

    if not app.config.get('CONTACT_RECIPIENT'):
        app.config['CONTACT_RECIPIENT'] = app.config.get('MAIL_USERNAME')

    return app.config


def public_data_path(app_id, collection):
    return f"artifacts/{app_id}/public/data/{collection}"


def portfolio_collection_path(app_id):
    return public_data_path(app_id, 'portfolio')


def contact_collection_path(app_id):
    return public_data_path(app_id, 'contactMessages')
