"""Entry point for `python -m albingress`.

Usage:
    python -m albingress
"""

from __future__ import annotations

import asyncio

from albingress.app import main

asyncio.run(main())
