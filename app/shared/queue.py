"""
Background job enqueueing through the arq worker.

Callers get ``False`` back when Redis is not configured or the enqueue fails,
and are expected to run the work inline instead.
"""

import logging
from typing import Optional

from arq import create_pool

from ..rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


async def enqueue_job(function: str, *args, job_id: Optional[str] = None) -> bool:
    if get_redis_client() is None:
        logger.info(f"ℹ️ Redis not configured, {function} will run inline")
        return False

    from ..worker import get_redis_settings

    try:
        pool = await create_pool(get_redis_settings())
        try:
            job = await pool.enqueue_job(function, *args, _job_id=job_id)
        finally:
            await pool.close()
    except Exception as e:
        logger.error(f"❌ Failed to queue {function}: {e}")
        return False

    if job is None:
        # arq refuses a second job with the same id while the first is still known
        logger.info(f"ℹ️ {function} job {job_id} already queued")
    else:
        logger.info(f"📋 {function} job queued: {job.job_id}")
    return True
