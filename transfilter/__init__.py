from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()


def _database_url():
    url = os.getenv('DATABASE_URL', 'sqlite:///translations.db')
    # Some hosts still hand out the deprecated scheme
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def create_app(config_name='development'):
    app = Flask(__name__)

    # Config
    app.config['SQLALCHEMY_DATABASE_URI'] = _database_url()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-session-secret')
    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')

    app.config['TRANSLATIONS_CACHING_MODE'] = os.getenv('TRANSLATIONS_CACHING_MODE', 'request')
    app.config['TRANSLATIONS_CACHE_TTL'] = int(os.getenv('TRANSLATIONS_CACHE_TTL', 300))
    app.config['REDIS_URL'] = os.getenv('REDIS_URL', '')
    app.config['TRANSLATIONS_UNTRANSLATED_PAGES'] = os.getenv('TRANSLATIONS_UNTRANSLATED_PAGES', '')
    app.config['TRANSLATIONS_SITE_LANGUAGE'] = os.getenv('TRANSLATIONS_SITE_LANGUAGE', 'en')
    app.config['TRANSLATIONS_FALLBACK_LANGUAGE'] = os.getenv('TRANSLATIONS_FALLBACK_LANGUAGE', '')
    app.config['TRANSLATIONS_WWWROOT'] = os.getenv('TRANSLATIONS_WWWROOT', 'http://localhost:5000')
    app.config['TRANSLATIONS_SYSTEM_CONTEXT_ID'] = int(os.getenv('TRANSLATIONS_SYSTEM_CONTEXT_ID', 1))
    app.config['TRANSLATIONS_URL_REWRITER'] = None
    app.config['TRANSLATIONS_CONTEXT_RESOLVER'] = None

    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'

    # Initialize extensions
    db.init_app(app)
    CORS(app, supports_credentials=True)

    with app.app_context():
        from transfilter import models  # noqa: F401  (registers tables)
        try:
            db.create_all()
        except Exception as e:
            app.logger.warning(f"Could not create database tables: {e}")

    from transfilter.routes import register_routes
    register_routes(app)

    # Health check
    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok'}, 200

    return app
