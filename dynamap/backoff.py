"""
Delay policies applied between pages and between rounds of unprocessed batch items.

A policy is a zero-argument callable that blocks for as long as it decides.
The ``backoff`` setting selects one::

    backoff = 'constant'                                        # sleep 1 second
    backoff = {'constant': 0.5}                                 # sleep 0.5 seconds
    backoff = {'exponential': {'base_backoff': 0.2, 'ceiling': 10}}
    backoff = my_callable
"""
import time
from typing import Any, Callable, Dict, Mapping, Optional, Union

BackoffPolicy = Callable[[], None]
BackoffSetting = Union[None, str, Mapping[str, Any], BackoffPolicy]


def constant_backoff(n: float = 1, time_module: Optional[Any] = None) -> BackoffPolicy:
    """
    Sleeps the same amount of time on every call

    :param n: seconds to sleep
    :param time_module: Optional: the module responsible for sleeping. Intended to be used for testing purposes.
    """
    time_module = time_module or time

    def backoff() -> None:
        time_module.sleep(n)

    return backoff


def exponential_backoff(
    base_backoff: float = 0.5,
    ceiling: int = 3,
    time_module: Optional[Any] = None,
) -> BackoffPolicy:
    """
    Truncated binary exponential backoff.

    The n-th call sleeps ``base_backoff * 2 ** (n - 1)`` seconds until n reaches
    ``ceiling``; after that every call sleeps ``base_backoff * 2 ** (ceiling - 1)``.
    """
    time_module = time_module or time
    times = 1

    def backoff() -> None:
        nonlocal times
        power = times - 1 if times <= ceiling else ceiling - 1
        time_module.sleep(base_backoff * (2 ** power))
        times += 1

    return backoff


BACKOFF_STRATEGIES: Dict[str, Callable[..., BackoffPolicy]] = {
    'constant': constant_backoff,
    'exponential': exponential_backoff,
}


def build_backoff(setting: BackoffSetting, time_module: Optional[Any] = None) -> Optional[BackoffPolicy]:
    """
    Creates a fresh policy from a ``backoff`` setting, or None when no delay is configured.

    Stateful policies such as exponential backoff start over with every call.
    """
    if not setting:
        return None
    if isinstance(setting, str):
        return _strategy(setting)(time_module=time_module)
    if isinstance(setting, Mapping):
        if len(setting) != 1:
            raise ValueError("A backoff setting names exactly one strategy, got: {}".format(list(setting)))
        name, options = next(iter(setting.items()))
        strategy = _strategy(name)
        if isinstance(options, Mapping):
            return strategy(time_module=time_module, **options)
        return strategy(options, time_module=time_module)
    if callable(setting):
        return setting
    raise ValueError("Unsupported backoff setting: {!r}".format(setting))


def _strategy(name: str) -> Callable[..., BackoffPolicy]:
    try:
        return BACKOFF_STRATEGIES[name]
    except KeyError:
        raise ValueError("Unknown backoff strategy: {}".format(name))
