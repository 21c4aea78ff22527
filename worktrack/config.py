import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration for the Flask app and the in-memory store.

    - ``REPORTS_DIR``: directory the background report jobs write ``.xlsx``
      files into.  Created on demand.
    - ``SEED_SAMPLE_DATA``: load the fixed sample employees and work cards
      when the store is created.  Set to 0 to start with an empty store.
    - ``QR_BOX_SIZE`` / ``QR_BORDER``: pixel size of one QR module and the
      quiet-zone width (in modules) of rendered QR images.
    - ``RECENT_SESSIONS_DEFAULT`` / ``RECENT_SESSIONS_MAX``: default and upper
      bound for ``?limit=`` on the recent work sessions endpoint.
    - ``LOG_LEVEL``: level applied to ``app.logger``.
    """

    REPORTS_DIR = os.getenv("REPORTS_DIR", os.path.join(os.getcwd(), "reports"))
    SEED_SAMPLE_DATA = _env_flag("SEED_SAMPLE_DATA", "1")
    QR_BOX_SIZE = int(os.getenv("QR_BOX_SIZE", "10"))
    QR_BORDER = int(os.getenv("QR_BORDER", "2"))
    RECENT_SESSIONS_DEFAULT = int(os.getenv("RECENT_SESSIONS_DEFAULT", "10"))
    RECENT_SESSIONS_MAX = int(os.getenv("RECENT_SESSIONS_MAX", "200"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
