"""TrackDesk test suite.

The repository root is put on ``sys.path`` so ``modules``, ``utils`` and
``notifications`` import without an installed package.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))
