"""Release transaction bounded context.

- model: the values exchanged with the ledger and between jobs
- errors: the canonical error payload
- tags: release tag naming
"""

from __future__ import annotations
