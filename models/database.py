from flask_sqlalchemy import SQLAlchemy


# Initialize SQLAlchemy without binding to app yet
db = SQLAlchemy()
