"""Shared random source for a simulation process.

Every random draw (velocities, positions, branch choices, readings, windows)
comes from one generator so a fixed seed reproduces a whole run. The
generator must be initialised explicitly before first use.

Usage:
    from indoorsim.rng import init_random
    rng = init_random(42)  # Call once at startup, then pass rng down
"""

from __future__ import annotations

import logging
import random

logger = logging.getLogger(__name__)

_rng: random.Random | None = None


def init_random(seed: int | None = None) -> random.Random:
    """Create (or recreate) the process-wide random source.

    Args:
        seed: Seed for reproducible runs. None seeds from the OS.

    Returns:
        The new generator.
    """
    global _rng
    _rng = random.Random(seed)
    logger.debug("Random source initialised: seed=%s", seed)
    return _rng


def get_random() -> random.Random:
    """Return the process-wide random source.

    Raises:
        RuntimeError: If init_random() has not been called.
    """
    if _rng is None:
        raise RuntimeError("Random source not initialised - call init_random() first")
    return _rng


def reset_random() -> None:
    """Discard the process-wide random source."""
    global _rng
    _rng = None
