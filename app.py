"""Entry-point script – simply delegates to Uvicorn with the FastAPI app that
lives in the ``dorislift`` package."""

import uvicorn

from dorislift import config


if __name__ == "__main__":
    # For development, it's recommended to use the uvicorn command directly:
    # uvicorn dorislift:app --reload --port 5001
    uvicorn.run(
        "dorislift:app",
        host=config.get('api', {}).get('host', "127.0.0.1"),
        port=config.get('api', {}).get('port', 5001),
        reload=config.get('api', {}).get('debug', False),
    )
