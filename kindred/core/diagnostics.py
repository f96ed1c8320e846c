import functools
import inspect
import time
import traceback
from datetime import datetime

from loguru import logger

from kindred.core.config import get_settings

# Track store metrics
metrics = {
    "db_operations": 0,
    "errors": 0,
    "last_operation": None,
    "last_operation_time": None,
}


def diagnostics_enabled() -> bool:
    return get_settings().DIAGNOSTICS_ENABLED


def reset_metrics() -> None:
    metrics.update(db_operations=0, errors=0, last_operation=None, last_operation_time=None)


def track_db(func):
    """Decorator to track database operations"""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        if not diagnostics_enabled():
            return await func(*args, **kwargs)

        metrics["db_operations"] += 1
        metrics["last_operation"] = func.__name__
        metrics["last_operation_time"] = datetime.now().isoformat()

        # Get function signature
        sig = inspect.signature(func)
        bound_args = sig.bind(*args, **kwargs)
        bound_args.apply_defaults()

        # Create a descriptor of the operation
        arg_desc = {
            k: (str(v) if not isinstance(v, int) else v)
            for k, v in bound_args.arguments.items()
            if k != 'session' and k != 'self'
        }

        logger.info(f"DB OPERATION #{metrics['db_operations']} - {func.__name__} with args: {arg_desc}")

        try:
            start_time = time.time()
            result = await func(*args, **kwargs)
            execution_time = time.time() - start_time

            result_type = type(result).__name__
            if hasattr(result, '__len__'):
                logger.info(f"DB OPERATION {func.__name__} completed in {execution_time:.2f}s - returned {result_type} with {len(result)} items")
            else:
                logger.info(f"DB OPERATION {func.__name__} completed in {execution_time:.2f}s - returned {result_type}")

            return result
        except Exception as e:
            metrics["errors"] += 1
            logger.error(f"DB ERROR in {func.__name__}: {str(e)}")
            logger.error(traceback.format_exc())
            raise

    return wrapper


def get_diagnostics_report() -> str:
    """Get a diagnostics report"""
    if not diagnostics_enabled():
        return "Diagnostics disabled (set KINDRED_DIAGNOSTICS=1 to enable)"

    report = [
        "==== STORE DIAGNOSTICS REPORT ====",
        f"DB operations: {metrics['db_operations']}",
        f"Errors: {metrics['errors']}",
        f"Last operation: {metrics['last_operation']}",
        f"Last operation time: {metrics['last_operation_time']}",
        f"Current time: {datetime.now().isoformat()}",
    ]

    return "\n".join(report)
