#!/usr/bin/env python3
# backend/run_athena.py
"""
Development server runner for the Athena sessions API.
For local development only.
"""
import os
from pathlib import Path

import uvicorn

backend_dir = Path(__file__).parent
os.chdir(backend_dir)

if __name__ == "__main__":
    print("Starting Athena sessions API")
    print("Access at: http://localhost:8000")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run("athena.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
