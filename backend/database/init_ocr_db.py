"""
OCR Core - ocr_data schema script

Usage: python -m database.init_ocr_db [create|drop|check]

create  creates ocr_data if missing
drop    drops ocr_data (all stored OCR text is lost)
check   reports whether ocr_data exists, its columns and row count
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import text
from dotenv import load_dotenv

# Load environment variables
ROOT_DIR = Path(__file__).parent.parent
load_dotenv(ROOT_DIR / '.env')

from database.connection import engine, Base
from database.ocr_models import OcrDataDB

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

OCR_TABLE = OcrDataDB.__tablename__


async def create_ocr_table() -> Dict[str, Any]:
    logger.info(f"Creating table {OCR_TABLE}...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=[OcrDataDB.__table__])

    return await check_ocr_table()


async def drop_ocr_table():
    """Drop ocr_data. Stored OCR text is not recoverable afterwards."""
    logger.warning(f"Dropping table {OCR_TABLE}...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all, tables=[OcrDataDB.__table__])

    logger.info(f"Table {OCR_TABLE} dropped")


async def check_ocr_table() -> Dict[str, Any]:
    """
    Inspect the ocr_data table.

    Returns:
        {"table", "exists", "columns", "rows"}; rows is None when the
        table is missing
    """
    status: Dict[str, Any] = {"table": OCR_TABLE, "exists": False, "columns": [], "rows": None}

    async with engine.begin() as conn:
        result = await conn.execute(
            text("""
                SELECT column_name
                FROM information_schema.columns
                WHERE table_schema = 'public' AND table_name = :table
                ORDER BY ordinal_position
            """),
            {"table": OCR_TABLE},
        )
        columns = [row[0] for row in result.fetchall()]
        if not columns:
            return status

        count = await conn.execute(text(f"SELECT COUNT(*) FROM {OCR_TABLE}"))
        status.update(exists=True, columns=columns, rows=count.scalar_one())

    missing = sorted(set(OcrDataDB.__table__.columns.keys()) - set(columns))
    if missing:
        logger.warning(f"Table {OCR_TABLE} is missing columns: {missing}")
    return status


async def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    command = argv[0] if argv else "create"

    try:
        if command == "drop":
            await drop_ocr_table()
        elif command in ("create", "check"):
            status = await (create_ocr_table() if command == "create" else check_ocr_table())
            if status["exists"]:
                print(f"{OCR_TABLE}: {status['rows']} rows, columns {status['columns']}")
            else:
                print(f"{OCR_TABLE}: not found")
        else:
            print(f"Unknown command: {command}")
            print("Usage: python -m database.init_ocr_db [create|drop|check]")
            return 2
    finally:
        await engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
