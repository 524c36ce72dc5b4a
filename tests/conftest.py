import os
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep unit tests deterministic and independent from local shell configuration.
os.environ["ENVIRONMENT"] = "test"
for _name in ("NODE_ENV", "CORS_ALLOWLIST", "GITHUB_TOKEN", "GITHUB_API_TOKEN"):
    os.environ.pop(_name, None)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    import main

    main.rate_limiter.reset()
    yield
    main.rate_limiter.reset()
