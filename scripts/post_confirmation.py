#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import time
from typing import Any

import httpx
from httpx import ConnectError

from app.infrastructure.marketplace.webhook_verify import sign_body


def build_payload(appointment_id: str, stylist_id: str) -> dict[str, Any]:
    return {
        "appointmentId": appointment_id,
        "appointment": {"id": appointment_id, "stylist_id": stylist_id, "status": "confirmed"},
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a stylist confirmation webhook POST")
    parser.add_argument("appointment_id")
    parser.add_argument("--url", default="http://127.0.0.1:8001/webhooks/appointments/confirmed")
    parser.add_argument("--stylist", default="st-1")
    parser.add_argument("--secret", default="", help="Marketplace webhook secret for signature")
    args = parser.parse_args()

    body = json.dumps(build_payload(args.appointment_id, args.stylist)).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    if args.secret:
        sent_at = int(time.time())
        headers["X-Marketplace-Timestamp"] = str(sent_at)
        headers["X-Marketplace-Signature"] = sign_body(body, args.secret, sent_at)

    try:
        resp = httpx.post(args.url, content=body, headers=headers, timeout=10.0)
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        print("Try: uvicorn app.main:app --reload --port 8001")
        return

    print(resp.status_code)
    if resp.text:
        print(resp.text)


if __name__ == "__main__":
    main()
