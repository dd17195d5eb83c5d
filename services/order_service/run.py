import argparse

import uvicorn

from libs.order_common.config import Settings
from services.order_service.app.main import create_app


def parse_args(argv=None) -> argparse.Namespace:
    defaults = Settings()
    parser = argparse.ArgumentParser(
        prog="order-service",
        description="Order service that lets you store and read orders as JSON",
    )
    parser.add_argument("-p", "--port", type=int, default=defaults.port)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("-d", "--database-url", default=defaults.database_url)
    parser.add_argument("--log-level", default=defaults.log_level)
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = Settings(database_url=args.database_url, port=args.port, log_level=args.log_level)
    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
