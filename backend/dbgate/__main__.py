"""
dbgate server entry point.

Usage:
    python -m dbgate
    python -m dbgate --listener 3000 --host db.local --user api --password secret --token s3cr3t

Options default to the settings (environment / .env).
"""

import argparse

import uvicorn

from dbgate.core.config import settings


def main() -> None:
    parser = argparse.ArgumentParser(description="HTTP to MySQL gateway", add_help=False)
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    parser.add_argument("-l", "--listener", type=int, default=settings.LISTEN_PORT, help="Listen to port")
    parser.add_argument("-p", "--port", type=int, default=settings.MYSQL_PORT, help="MySQL port")
    parser.add_argument("-u", "--user", default=settings.MYSQL_USER, help="MySQL user")
    parser.add_argument("-h", "--host", default=settings.MYSQL_HOST, help="MySQL host")
    parser.add_argument("-w", "--password", default=settings.MYSQL_PASSWORD, help="MySQL password")
    parser.add_argument("-t", "--token", default=settings.GATEWAY_TOKEN, help="Secret token")
    args = parser.parse_args()

    # Pools read these when they are first created
    settings.MYSQL_PORT = args.port
    settings.MYSQL_USER = args.user
    settings.MYSQL_HOST = args.host
    settings.MYSQL_PASSWORD = args.password
    settings.GATEWAY_TOKEN = args.token

    uvicorn.run("dbgate.main:app", host=settings.LISTEN_HOST, port=args.listener)


if __name__ == "__main__":
    main()
