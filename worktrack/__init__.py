from flask import Flask
from flask_cors import CORS

from .config import Config
from .seed import load_sample_data
from .storage import MemStorage


def create_app(testing: bool = False, **overrides):
    app = Flask(__name__)
    app.config.from_object(Config)
    if testing:
        app.config["TESTING"] = True
    app.config.update(overrides)
    app.json.sort_keys = False
    app.logger.setLevel(app.config["LOG_LEVEL"])

    CORS(app)

    storage = MemStorage()
    if app.config["SEED_SAMPLE_DATA"]:
        load_sample_data(storage)
    app.extensions["worktrack.storage"] = storage

    from .routes import bp as main_bp
    from .api import api as api_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix="/api")

    return app
