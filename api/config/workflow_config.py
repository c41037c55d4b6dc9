"""
Workflow Engine Configuration

Environment-based configuration for workflow execution
"""

import os
from dotenv import load_dotenv
load_dotenv()


class WorkflowConfig:
    """Workflow engine configuration settings"""

    # State backend: "redis" or "memory"
    STATE_BACKEND = os.getenv('STATE_BACKEND', 'redis').lower()

    # Redis Settings
    REDIS_HOST = os.getenv('REDIS_HOST', 'redis')
    REDIS_PORT = int(os.getenv('REDIS_PORT', 6379))
    REDIS_DB = int(os.getenv('REDIS_DB', 1))  # DB 1 = workflow state
    REDIS_PASSWORD = os.getenv('REDIS_PASSWORD', None)

    # Scheduling
    MAX_CONCURRENT_EXECUTIONS = int(os.getenv('MAX_CONCURRENT_EXECUTIONS', 100))

    # Task Settings
    TASK_TIMEOUT_SECONDS = float(os.getenv('TASK_TIMEOUT_SECONDS', 300))
    TASK_RETRY_BACKOFF = float(os.getenv('TASK_RETRY_BACKOFF', 2))  # Exponential backoff base
    TASK_RETRY_BACKOFF_CAP = float(os.getenv('TASK_RETRY_BACKOFF_CAP', 60))

    # Store write retries before an execution is failed with a store error
    STORE_WRITE_RETRIES = int(os.getenv('STORE_WRITE_RETRIES', 3))
    STORE_RETRY_BACKOFF = float(os.getenv('STORE_RETRY_BACKOFF', 0.5))

    # Multiplier on simulated executor delays (0 disables the sleep)
    EXECUTOR_DELAY_SCALE = float(os.getenv('EXECUTOR_DELAY_SCALE', 1.0))

    # TTL Settings
    EXECUTION_TTL_DAYS = int(os.getenv('EXECUTION_TTL_DAYS', 7))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'default').lower()

    @classmethod
    def get_redis_url(cls) -> str:
        """Get Redis connection URL"""
        if cls.REDIS_PASSWORD:
            return f"redis://:{cls.REDIS_PASSWORD}@{cls.REDIS_HOST}:{cls.REDIS_PORT}/{cls.REDIS_DB}"
        else:
            return f"redis://{cls.REDIS_HOST}:{cls.REDIS_PORT}/{cls.REDIS_DB}"

    @classmethod
    def execution_ttl_seconds(cls) -> int:
        return cls.EXECUTION_TTL_DAYS * 86400
