"""
Shared async Redis connection for execution state and event pub/sub
"""
import logging
from typing import Optional

import redis.asyncio as redis

from config.workflow_config import WorkflowConfig

logger = logging.getLogger(__name__)


class RedisClient:
    """Process-wide redis.asyncio client, created on first use"""

    _instance: Optional[redis.Redis] = None

    @classmethod
    async def get_client(cls) -> redis.Redis:
        """
        Connect (once) using WorkflowConfig and verify with PING

        Raises:
            redis.ConnectionError: Server unreachable
        """
        if cls._instance is not None:
            return cls._instance

        client = redis.from_url(
            WorkflowConfig.get_redis_url(),
            decode_responses=True,  # state is stored as JSON text
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )

        try:
            await client.ping()
        except redis.ConnectionError as e:
            logger.error(f"Redis unreachable at {WorkflowConfig.REDIS_HOST}:{WorkflowConfig.REDIS_PORT}: {e}")
            await client.aclose()
            raise

        logger.info(
            f"Workflow state store connected: {WorkflowConfig.REDIS_HOST}:"
            f"{WorkflowConfig.REDIS_PORT} (DB {WorkflowConfig.REDIS_DB})"
        )
        cls._instance = client
        return client

    @classmethod
    async def close(cls) -> None:
        if cls._instance is None:
            return
        await cls._instance.aclose()
        cls._instance = None
        logger.info("Workflow state store connection closed")
