import random
from typing import List, Optional, Sequence

from .. import config
from ..exceptions import ConfigurationError


def validate_order(order: str) -> str:
    if order not in config.ORDER_VALUES:
        raise ConfigurationError(
            f"Invalid order {order!r}; expected one of: {', '.join(config.ORDER_VALUES)}"
        )
    return order


def order_photos(paths: Sequence[str], order: str, rng: Optional[random.Random] = None) -> List[str]:
    """
    'any' keeps the iteration order of the filtered set (listing order, not
    stable across runs). 'random' draws a fresh permutation on every call.
    """
    validate_order(order)
    if order == config.ORDER_RANDOM:
        rng = rng or random.Random()
        return rng.sample(list(paths), len(paths))
    return list(paths)
