import uvicorn

from beacon.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "beacon.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
    )


if __name__ == "__main__":
    main()
