"""Arranque del servidor: `python -m photo_uploader`."""

import uvicorn

from photo_uploader.core.config import get_settings
from photo_uploader.main import create_app


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
