# tests/conftest.py
from __future__ import annotations

import os

# api.py loads settings at import time; profile is the only required value.
os.environ.setdefault("WEBCALL_PROFILE", "test")
