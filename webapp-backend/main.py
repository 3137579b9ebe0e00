#!/usr/bin/env python3
"""Application entrypoint for running the FastAPI app with Uvicorn."""

from dotenv import load_dotenv

from app.main import create_app
from app.utils.env import get_env_int


def main() -> None:
    load_dotenv()

    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=get_env_int("PORT", 8080))


if __name__ == "__main__":
    main()
