"""Run the local gallery server: ``python -m gallery``."""

import uvicorn

from gallery.config import settings


def main() -> None:
    uvicorn.run("gallery.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
