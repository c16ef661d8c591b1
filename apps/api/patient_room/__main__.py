"""Run the patient room server with ``python -m patient_room``."""
from __future__ import annotations

import uvicorn

from .core.config import settings
from .core.logs import configure_logging


def main() -> None:
    configure_logging(settings.log_level)
    uvicorn.run("patient_room.main:app", host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
