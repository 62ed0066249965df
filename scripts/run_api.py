#!/usr/bin/env python
"""
Run the Encounter Pricing API with uvicorn.

Host, port and auto-reload come from Settings (ENCOUNTER_API_HOST,
ENCOUNTER_API_PORT, ENCOUNTER_API_RELOAD).

Usage:
    python scripts/run_api.py
"""
import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
src_path = str(project_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from encounter_pricing.config.settings import Settings


def build_command(settings: Settings) -> list[str]:
    cmd = [
        sys.executable, "-m", "uvicorn",
        "encounter_pricing.api.main:app",
        "--host", settings.api_host,
        "--port", str(settings.api_port),
    ]
    if settings.api_reload:
        cmd += ["--reload", "--reload-dir", src_path]
    return cmd


def main():
    settings = Settings.load(project_root=project_root)

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src_path, env.get("PYTHONPATH")) if p)

    cmd = build_command(settings)
    print(f"Starting Encounter Pricing API on http://{settings.api_host}:{settings.api_port}")
    print(f"Catalog: {settings.catalog_path}")
    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
