from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from premium_bot.domain.policies import DownloadLimits
from premium_bot.infrastructure.ledger import Ledger


T0 = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def utc_clock() -> Mock:
    return Mock(return_value=T0)


@pytest.fixture
def limits() -> DownloadLimits:
    return DownloadLimits(free=5, premium=50)


@pytest.fixture
async def ledger(tmp_path, limits, utc_clock) -> Ledger:
    ledger = Ledger(data_dir=tmp_path, limits=limits, clock=utc_clock)
    await ledger.start()
    return ledger
