"""
Run the API with uvicorn on HOST/PORT from settings:

  python -m fuelcredit.server
"""

import logging

import uvicorn

from fuelcredit.core.config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "fuelcredit.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
