"""Run the HTTP service: ``python -m docvault``."""

from __future__ import annotations

import os

import uvicorn

from docvault.app import create_app


def main() -> None:
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
