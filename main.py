#!/usr/bin/env python3
"""
HRV Feature Extraction — API server
====================================
Serves the analysis API with Uvicorn.

Usage:
    python main.py                       # 127.0.0.1:8000
    python main.py --host 0.0.0.0 --port 9000 --log-level debug
"""

import argparse

import uvicorn
from api.app import create_app
from config import API_HOST, API_PORT


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Serve the HRV analysis API")
    parser.add_argument("--host", default=API_HOST, help="Bind address")
    parser.add_argument("--port", type=int, default=API_PORT, help="Bind port")
    parser.add_argument("--log-level", default="info",
                        choices=["critical", "error", "warning", "info", "debug"],
                        help="Uvicorn log level")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=args.log_level)
