#!/usr/bin/env python3
"""Generate a sample workout PDF against a running server and download it back."""

import os
import sys

import httpx

BASE_URL = os.getenv("WORKOUT_PDF_BASE_URL", "http://localhost:8000").rstrip("/")

SAMPLE_WORKOUT = {
    "title": "Leg Day",
    "description": "Smoke test workout",
    "metadata": {"createdBy": "smoke_generate.py", "difficulty": "Moderate"},
    "schedule": [
        {
            "day": "Monday",
            "exercises": [
                {"name": "Back Squat", "sets": 4, "reps": 8},
                {"name": "Walking Lunge", "duration": "2 min", "notes": "bodyweight"},
            ],
        }
    ],
}


def main() -> int:
    with httpx.Client(base_url=BASE_URL, timeout=10) as client:
        generated = client.post(
            "/api/generate-pdf",
            json={"data": SAMPLE_WORKOUT, "options": {"cleanupDelayMs": 60000}},
        )
        generated.raise_for_status()
        info = generated.json()["data"]
        print(f"Generated {info['filename']} (expires {info['expiresAt']})")

        download = client.get(info["downloadUrl"])
        download.raise_for_status()

    if download.headers.get("content-type") != "application/pdf" or not download.content.startswith(b"%PDF-"):
        print("Download did not return a PDF.")
        return 1
    print(f"Downloaded {len(download.content)} bytes from {BASE_URL}{info['downloadUrl']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
