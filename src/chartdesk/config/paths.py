from __future__ import annotations

import os
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[3]

TOKEN_FILE = os.getenv("CHARTDESK_TOKEN_FILE", str(ROOT_DIR / "token.json"))
