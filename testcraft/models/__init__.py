"""
TestCraft Reporting Service
SQLAlchemy extension instance shared by every model module.

Usage:
    from testcraft.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
