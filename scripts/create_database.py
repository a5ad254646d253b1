#!/usr/bin/env python
"""Create the PostgreSQL database named in `DATABASE_URL`.

Usage:
  python scripts/create_database.py [--password PASSWORD]
"""
import argparse
import os
import sys
from getpass import getpass

import psycopg2
from psycopg2 import OperationalError, sql
from sqlalchemy.engine import make_url

from certi.config import settings


def connect(url, password):
    return psycopg2.connect(
        dbname="postgres",
        user=url.username,
        password=password,
        host=url.host or "localhost",
        port=url.port or 5432,
    )


def main():
    parser = argparse.ArgumentParser(description="Create the application database if it is missing")
    parser.add_argument("--password", "-p", help="Postgres admin password")
    args = parser.parse_args()

    url = make_url(settings.DATABASE_URL)
    target_db = url.database
    if not target_db:
        print("No database name found in DATABASE_URL")
        sys.exit(1)

    password = args.password or os.getenv("POSTGRES_PASSWORD") or url.password

    try:
        conn = connect(url, password)
    except OperationalError:
        if not sys.stdin.isatty():
            print("Password authentication failed. Provide the password via --password or POSTGRES_PASSWORD.")
            sys.exit(1)
        print(f"Password authentication failed. Enter the Postgres password for user {url.username}:")
        try:
            conn = connect(url, getpass())
        except OperationalError as e:
            print("Error connecting to Postgres:", e)
            sys.exit(1)

    conn.autocommit = True
    cur = conn.cursor()
    try:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone():
            print(f"Database '{target_db}' already exists.")
        else:
            cur.execute(sql.SQL("CREATE DATABASE {};").format(sql.Identifier(target_db)))
            print(f"Database '{target_db}' created.")
    finally:
        cur.close()
        conn.close()


if __name__ == "__main__":
    main()
