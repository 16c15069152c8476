"""Bundled responder scripts, shipped as package data."""

from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parent
DOCTOR = SCRIPT_DIR / "doctor.json"
