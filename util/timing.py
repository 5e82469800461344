# util/timing.py
import asyncio
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Dict, Any
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Dict[str, Any]) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "ai.extract", slide=3):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.done ms=%d%s", name, dt_ms, suffix)


async def real_sleep(seconds: float) -> None:
    if seconds > 0:
        await asyncio.sleep(seconds)


def local_now() -> datetime:
    # Timezone-aware so prompts can carry a zone name.
    return datetime.now().astimezone()
