"""
UI package for PitchSync.

This package contains the Flask JSON API used by the external editor and
confirmation surfaces.
"""
from .web_app import WebAppState, create_app, run_web_app

__all__ = ["WebAppState", "create_app", "run_web_app"]
