import uvicorn

from .settings import load_server_settings


def main() -> None:
    settings = load_server_settings()
    uvicorn.run("chat_proxy.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
