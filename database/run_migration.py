"""
Supabase schema check script

The Python client cannot run DDL, so missing tables are reported and the
schema is printed for the Supabase SQL Editor.
"""
import sys
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from httpx import HTTPError
from loguru import logger
from postgrest.exceptions import APIError

load_dotenv()

SCHEMA_FILE = Path(__file__).parent / "schema.sql"
REQUIRED_TABLES = ("roles", "clubs", "users", "members", "invites", "emails")


def check_tables() -> List[str]:
    """Return the required tables that are missing (empty list when all exist)"""
    from database.supabase_client import get_supabase_client

    client = get_supabase_client()
    missing = []

    for table in REQUIRED_TABLES:
        try:
            client.table(table).select("*").limit(1).execute()
            logger.info(f"[OK] {table}")
        except (APIError, HTTPError) as e:
            if "does not exist" in str(e) or "relation" in str(e).lower():
                logger.warning(f"[MISSING] {table}")
                missing.append(table)
            else:
                raise

    if missing:
        print_schema()
    return missing


def print_schema() -> None:
    """Print the schema SQL for the Supabase Dashboard"""
    sql_content = SCHEMA_FILE.read_text(encoding="utf-8")

    logger.info("=" * 60)
    logger.info("Run the following SQL in the Supabase Dashboard:")
    logger.info("1. https://supabase.com/dashboard")
    logger.info("2. Project -> SQL Editor")
    logger.info("=" * 60)
    print("\n" + sql_content + "\n")


if __name__ == "__main__":
    logger.remove()
    logger.add(sys.stdout, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}")
    sys.exit(1 if check_tables() else 0)
