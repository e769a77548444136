"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Database - single SQLite file unless DATABASE_URL points elsewhere
    DATA_DIR = os.getenv('DATA_DIR', os.path.join(BASE_DIR, 'data'))
    DATABASE_URL = os.getenv('DATABASE_URL') or f"sqlite:///{os.path.join(DATA_DIR, 'kala_pos.db')}"

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Shop behaviour
    STORE_TIMEZONE = os.getenv('STORE_TIMEZONE', 'Asia/Kolkata')
    DEFAULT_CUSTOMER_NAME = os.getenv('DEFAULT_CUSTOMER_NAME', 'Walk In Customer')
    # When true, sales may drive stock below zero (legacy behaviour)
    ALLOW_NEGATIVE_STOCK = os.getenv('ALLOW_NEGATIVE_STOCK', 'false').lower() == 'true'
    SEED_SAMPLE_DATA = os.getenv('SEED_SAMPLE_DATA', 'false').lower() == 'true'

    # Spreadsheet import
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_UPLOAD_SIZE', 5 * 1024 * 1024))  # 5MB
    ALLOWED_IMPORT_EXTENSIONS = {'xlsx', 'xlsm'}

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


class TestingConfig(Config):
    """In-memory database for the test suite."""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    ALLOW_NEGATIVE_STOCK = False
    SEED_SAMPLE_DATA = False
    LOG_LEVEL = 'WARNING'
