"""
architekt models package.

``db`` is the Flask-SQLAlchemy handle used by the SQL persistence adapter.
The Project aggregate itself lives in plain dataclasses
(``architekt.models.architecture``) and is stored as one JSON document.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
