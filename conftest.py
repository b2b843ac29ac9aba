"""Root conftest: pins gateway settings before any module imports them."""
from __future__ import annotations

import os
import tempfile

_TEST_ENV = {
    "DATA_DIR": tempfile.mkdtemp(prefix="gateway-test-"),
    "REDIS_URL": "redis://localhost:6379/15",
    "TRANSPORT_FACTORY": "",
    "AI_BACKENDS": "{}",
    "API_KEY": "",
}

for key, value in _TEST_ENV.items():
    os.environ.setdefault(key, value)
