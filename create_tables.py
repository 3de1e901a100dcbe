# create_tables.py
import asyncio

from app.core.logging import setup_logging
from app.db.session import ASYNC_URL, close_engines, create_all


async def _main() -> None:
    print(f"正在创建数据库表... ({ASYNC_URL})")
    try:
        await create_all()
    finally:
        await close_engines()
    print("所有数据库表创建完成！")


if __name__ == "__main__":
    setup_logging("INFO")
    asyncio.run(_main())
