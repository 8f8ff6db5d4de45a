import uvicorn

from socialfeed.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("socialfeed.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
