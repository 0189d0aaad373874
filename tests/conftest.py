"""Make ``ops_app`` importable from a plain checkout.

The package is laid out as namespace packages, so running ``pytest`` from the
repository root without ``pip install -e .`` needs the root on ``sys.path``.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
