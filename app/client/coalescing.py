"""
Request coalescing for the transport client.

While a call with given arguments is in flight, identical calls from other
threads wait for it and share its result or exception. Nothing is cached
once the call completes.
"""

from concurrent.futures import Future
from functools import wraps
from typing import Any, Callable, Dict, Hashable, Tuple
import logging
import threading

logger = logging.getLogger(__name__)


def _freeze(value: Any) -> Hashable:
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def coalesce_requests(func: Callable) -> Callable:
    """
    Decorate a client method so concurrent identical calls run once.

    Calls are keyed per instance on the method name and its arguments.
    """
    lock = threading.Lock()
    in_flight: Dict[Tuple, Future] = {}

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        key = (id(self), func.__name__, _freeze(args), _freeze(kwargs))

        with lock:
            future = in_flight.get(key)
            leader = future is None
            if leader:
                future = Future()
                in_flight[key] = future

        if not leader:
            logger.debug(f"Coalesced {func.__name__}{args} onto an in-flight call")
            return future.result()

        try:
            result = func(self, *args, **kwargs)
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with lock:
                in_flight.pop(key, None)

    wrapper.in_flight = in_flight
    return wrapper
