#!/usr/bin/env python
"""
Run the Menu Pricing API with uvicorn.

Usage:
    python scripts/run_api.py [--no-reload]

Host and port come from MENU_PRICING_HOST / MENU_PRICING_PORT.
"""
import os
import subprocess
import sys
from pathlib import Path


def main():
    project_root = Path(__file__).parent.parent

    # Ensure src is in python path
    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src_path, env.get("PYTHONPATH")) if p)

    host = env.get("MENU_PRICING_HOST", "127.0.0.1")
    port = env.get("MENU_PRICING_PORT", "8000")
    cmd = [sys.executable, "-m", "uvicorn", "menu_pricing.api.main:app", "--host", host, "--port", port]
    if "--no-reload" not in sys.argv[1:]:
        cmd.append("--reload")

    print(f"Starting Menu Pricing API on http://{host}:{port}")
    try:
        subprocess.run(cmd, env=env, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
