# src/pos_ui_bff/__main__.py

import uvicorn

from .config import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run("pos_ui_bff.main:app", host=settings.APP_HOST, port=settings.APP_PORT)


if __name__ == "__main__":
    run()
