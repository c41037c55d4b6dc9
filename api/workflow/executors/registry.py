"""
Task Executor Registry

Central registry mapping task categories to executor classes.
Executors register themselves using the @register_executor decorator.

Usage:
    from workflow.executors.registry import register_executor, get_executor_class

    @register_executor(TaskCategory.SEO_OPTIMIZATION, "SEO Optimization")
    class SEOOptimizationExecutor(TaskExecutor):
        ...

    # Later, retrieve by category
    executor_class = get_executor_class("seo_optimization")
    result = await executor_class().execute(template, context)
"""

import logging
from typing import Dict, Type, List, Union

from workflow.errors import UnknownTaskCategory
from workflow.executors.base import TaskExecutor
from workflow.models import TaskCategory

logger = logging.getLogger(__name__)

# Global registry: category → TaskExecutor subclass
_EXECUTOR_REGISTRY: Dict[str, Type[TaskExecutor]] = {}


def _key(category: Union[str, TaskCategory]) -> str:
    return category.value if isinstance(category, TaskCategory) else str(category)


def register_executor(category: Union[str, TaskCategory], executor_name: str = ""):
    """
    Decorator to register an executor class for a task category.

    Args:
        category: Task category the executor handles
        executor_name: Human-readable name (defaults to class name)
    """
    key = _key(category)

    def decorator(cls: Type[TaskExecutor]) -> Type[TaskExecutor]:
        if key in _EXECUTOR_REGISTRY:
            existing = _EXECUTOR_REGISTRY[key]
            logger.warning(
                f"Overwriting executor '{key}': "
                f"{existing.__name__} → {cls.__name__}"
            )

        cls.category = key
        cls.executor_name = executor_name or cls.__name__
        _EXECUTOR_REGISTRY[key] = cls

        logger.debug(f"Registered executor: {key} → {cls.__name__}")
        return cls

    return decorator


def get_executor_class(category: Union[str, TaskCategory]) -> Type[TaskExecutor]:
    """
    Get the executor class for a task category.

    Raises:
        UnknownTaskCategory: If category is not registered
    """
    key = _key(category)
    if key not in _EXECUTOR_REGISTRY:
        raise UnknownTaskCategory(
            f"Unknown task category '{key}'. "
            f"Registered categories: {list_registered_categories()}"
        )
    return _EXECUTOR_REGISTRY[key]


def list_registered_categories() -> List[str]:
    """List all registered categories."""
    return sorted(_EXECUTOR_REGISTRY.keys())


def build_executors(delay_scale: float = None) -> Dict[str, TaskExecutor]:
    """Instantiate one executor per registered category."""
    return {
        key: cls(delay_scale=delay_scale)
        for key, cls in _EXECUTOR_REGISTRY.items()
    }


def validate_categories(categories: List[Union[str, TaskCategory]]) -> List[str]:
    """
    Validate that every category used by a workflow has an executor.

    Returns:
        List of error messages (empty if all valid)
    """
    errors = []
    for category in categories:
        if _key(category) not in _EXECUTOR_REGISTRY:
            errors.append(f"Category '{_key(category)}' has no registered executor")
    return errors
