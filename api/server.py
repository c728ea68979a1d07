#!/usr/bin/env python3
"""
Flask host for the grading relay.

Run with:
    XIMILAR_API_KEY=... python api/server.py --port 8001

Then point clients at it:
    GRADER_RELAY_URL=http://127.0.0.1:8001/v1/grade

Routes:
- GET  /v1/health
- POST /v1/grade
- POST /.netlify/functions/cardGrader   (same relay, Netlify-compatible path)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

# This file lives in api/ next to api/http.py; drop api/ from sys.path so it
# does not shadow the stdlib `http` package, and put the repo root on it.
_api_dir = os.path.dirname(os.path.abspath(__file__))
if sys.path and os.path.abspath(sys.path[0]) == _api_dir:
    sys.path.pop(0)
REPO_ROOT = os.path.dirname(_api_dir)
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from api.http import response_body_bytes
from api.relay import forward
from services.config import GraderConfig, load_config
from services.http_transport import Transport


logger = logging.getLogger(__name__)


def create_app(config: Optional[GraderConfig] = None, transport: Optional[Transport] = None) -> Flask:
    app = Flask(__name__)
    CORS(app)
    cfg = config or load_config()

    @app.route("/v1/health", methods=["GET"])
    def health():
        return jsonify({"ok": True, "credential_configured": bool(cfg.api_key)}), 200

    @app.route("/v1/grade", methods=["POST"])
    @app.route("/.netlify/functions/cardGrader", methods=["POST"])
    def grade():
        resp = forward(cfg, request.get_data(), transport)
        return Response(
            response_body_bytes(resp),
            status=resp["statusCode"],
            content_type=resp["headers"]["content-type"],
        )

    return app


def main() -> int:
    ap = argparse.ArgumentParser(description="Card grading relay")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", default=8001, type=int)
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = load_config()
    if not config.api_key:
        logger.warning("XIMILAR_API_KEY is not set; grading requests will return 500")

    app = create_app(config)
    print(f"Relay listening on http://{args.host}:{args.port}/v1/grade")
    app.run(host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
