from __future__ import annotations

import time
from enum import Enum
from typing import Callable


class DelayKind(str, Enum):
    PAGE = "page"
    CHANNEL = "channel"


class RateGovernor:
    """Fixed spacing between outbound requests.

    There is no jitter and no reading of rate-limit headers; the delays alone
    keep a crawl under the server's limits.
    """

    def __init__(
        self,
        *,
        page_delay: float = 1.0,
        channel_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._delays = {
            DelayKind.PAGE: max(0.0, float(page_delay)),
            DelayKind.CHANNEL: max(0.0, float(channel_delay)),
        }
        self._sleep = sleep

    def wait(self, kind: DelayKind) -> None:
        seconds = self._delays[kind]
        if seconds > 0:
            self._sleep(seconds)
