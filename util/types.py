# util/types.py
from datetime import datetime
from typing import Awaitable, Callable


# Injected time primitives so tests can run with a virtual clock.
Sleeper = Callable[[float], Awaitable[None]]
Clock = Callable[[], datetime]
