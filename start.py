"""Entry point to run the FastAPI backend."""

import os
from pathlib import Path

# Load .env file FIRST so settings pick it up
from dotenv import load_dotenv
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

import uvicorn


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    print("=" * 50)
    print("Starting MediConnect Scheduling API")
    print(f"- API: http://localhost:{port}")
    print(f"- API Docs: http://localhost:{port}/docs")
    print("=" * 50)

    uvicorn.run(
        "mediconnect.main:app",
        host=host,
        port=port,
        reload=os.getenv("APP_ENV", "development") == "development",
    )


if __name__ == "__main__":
    main()
