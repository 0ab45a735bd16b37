"""
Example: Distributed Pipeline Execution

This example demonstrates:
- A gateway process submitting over Redis pub/sub
- Worker processes computing results into the Redis hash
- The durable log in PostgreSQL

Prerequisites:
- Redis running at localhost:6379
- PostgreSQL reachable through the PG* environment variables
- pip install -e .

Run this example with multiple terminals:
1. Terminal 1 (Worker):  python distributed_pipeline.py worker
2. Terminal 2 (Worker):  python distributed_pipeline.py worker
3. Terminal 3 (Gateway): python distributed_pipeline.py submit 10 20 30
"""

import asyncio
import sys
import logging
from typing import List

from fibpipe.config import get_settings
from fibpipe.core import PENDING, ValidationError
from fibpipe.main import run_worker
from fibpipe.services import Backends, build_gateway

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def run_submitter(indexes: List[str]):
    """Submit indexes and poll the cache until every one is computed."""
    settings = get_settings()
    backends = Backends.from_settings(settings)
    await backends.connect()

    gateway = build_gateway(backends, settings)

    try:
        accepted = []
        for raw in indexes:
            try:
                result = await gateway.submit(raw)
            except ValidationError as e:
                logger.error(f"Rejected {raw}: {e}")
                continue
            accepted.append(str(result.index))
            if result.receivers == 0:
                logger.warning(f"No worker subscribed, {result.index} stays pending")

        # Poll the fast read path
        for _ in range(60):
            values = await gateway.current_values()
            waiting = [key for key in accepted if values.get(key) == PENDING]
            if not waiting:
                break
            logger.info(f"Waiting on {waiting}...")
            await asyncio.sleep(1)

        for key in accepted:
            logger.info(f"fib({key}) = {values.get(key)}")

        records = await gateway.list_all()
        logger.info(f"Durable log holds {len(records)} records")

    finally:
        await backends.disconnect()


def main():
    if len(sys.argv) < 2:
        print("Usage:")
        print("  python distributed_pipeline.py worker")
        print("  python distributed_pipeline.py submit <index...>")
        sys.exit(1)

    role = sys.argv[1]

    if role == "worker":
        run_worker()
    elif role == "submit":
        if len(sys.argv) < 3:
            print("Error: Specify at least one index")
            print("Example: python distributed_pipeline.py submit 10 20")
            sys.exit(1)
        asyncio.run(run_submitter(sys.argv[2:]))
    else:
        print(f"Unknown role: {role}")
        sys.exit(1)


if __name__ == "__main__":
    main()
