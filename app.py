"""Exercise tracker API process entrypoint.

Run with ``python app.py`` or ``uvicorn app:app``.
"""

from __future__ import annotations

import uvicorn

from server.config import get_settings
from server.main import create_app

settings = get_settings()
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
