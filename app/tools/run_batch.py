"""Run one auto-assignment batch against the configured database.

Meant for a scheduler (cron, k8s CronJob) or a work-order-created hook.

Usage:
    python -m app.tools.run_batch
    python -m app.tools.run_batch --max-items 20
    python -m app.tools.run_batch --direct 101 102  # assign these work orders now
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from app.adapters.persistence.database import async_session_factory, engine
from app.infrastructure.api.dependencies import build_auto_assign_uc
from app.infrastructure.api.routes_auto_assign import serialize_batch

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def run(max_items: int | None, direct_ids: list[int]) -> dict:
    try:
        async with async_session_factory() as session:
            uc = build_auto_assign_uc(session)
            if direct_ids:
                batch = await uc.assign_work_orders(direct_ids)
            else:
                batch = await uc.run_batch(max_items)
            await session.commit()
    finally:
        await engine.dispose()
    return serialize_batch(batch)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run an auto-assignment batch")
    parser.add_argument("--max-items", type=int, default=None, help="Queue items to process")
    parser.add_argument(
        "--direct",
        type=int,
        nargs="+",
        default=[],
        metavar="WORK_ORDER_ID",
        help="Assign these work orders directly instead of draining the queue",
    )
    args = parser.parse_args()

    try:
        result = asyncio.run(run(args.max_items, args.direct))
    except Exception:
        logger.exception("Auto-assignment batch failed")
        sys.exit(1)

    print(json.dumps(result, indent=2, ensure_ascii=False))
    if result["processed"] == 0:
        logger.info("Nothing processed: %s", result["message"])


if __name__ == "__main__":
    main()
