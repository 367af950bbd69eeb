"""
decern-gate - CI gate that requires an approved decision for high-impact changes

Works on any CI: everything comes from git and environment variables.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Mapping

from decern_gate.services.config_manager import load_config
from decern_gate.services.gate import EXIT_BLOCKED, DecisionGate


async def run(environ: Mapping[str, str] | None = None) -> int:
    """Run the gate once; returns the exit code (0 = pass, 1 = blocked)"""
    config = load_config(environ)
    return await DecisionGate(config).run()


def main() -> int:
    try:
        return asyncio.run(run())
    except Exception as e:
        print("decern-gate: unexpected error", file=sys.stderr)
        print(str(e), file=sys.stderr)
        return EXIT_BLOCKED


if __name__ == "__main__":
    sys.exit(main())
