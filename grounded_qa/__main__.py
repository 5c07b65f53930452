"""
Run the HTTP service.

Example:
    python -m grounded_qa
"""

import uvicorn

from grounded_qa.config import settings


def main() -> None:
    uvicorn.run("grounded_qa.main:app", host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    main()
