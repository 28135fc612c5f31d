"""Container healthcheck: exit 0 once the tracker reports ready."""

from __future__ import annotations

import os
import sys
import urllib.request

port = os.environ.get("WHALE_API_PORT", "8080")

try:
    with urllib.request.urlopen(f"http://localhost:{port}/ready", timeout=5) as resp:
        sys.exit(0 if resp.status == 200 else 1)
except OSError:
    # HTTPError (503 while starting) is an OSError too
    sys.exit(1)
