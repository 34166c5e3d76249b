#!/usr/bin/env python3
"""
Main entry point for the PitchSync web API.

This script configures logging and launches the Flask server together with
the background polling loops.
"""
import logging
import os

from pitchsync.ui.web_app import run_web_app

if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("PITCHSYNC_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_web_app(
        host=os.getenv("PITCHSYNC_HOST", "127.0.0.1"),
        port=int(os.getenv("PITCHSYNC_PORT", "7122")),
    )
