#!/usr/bin/env python3
"""Promote a registered customer to ADMIN. Run on the server.

Usage: DATABASE_URL=... python -m demo.promote_admin <username>
"""
import asyncio
import os
import sys

from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.models.customer import Customer, CustomerRole


async def promote(username: str):
    engine = create_async_engine(os.environ["DATABASE_URL"])
    sf = async_sessionmaker(engine, class_=AsyncSession)
    async with sf() as s:
        r = await s.execute(
            update(Customer)
            .where(Customer.username == username)
            .values(role=CustomerRole.ADMIN)
        )
        await s.commit()
        print(f"Rows updated: {r.rowcount}")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(promote(sys.argv[1]))
