#!/usr/bin/env python3
"""
Booking and payment notification flow script.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Tokens are signed locally with JWT_SECRET_KEY and the notification with
MIDTRANS_SERVER_KEY, so both must match the running server's environment.

Usage:
    python scripts/flow_book_and_notify.py --profile-id <UUID> --court-id <UUID> \
        --start 2026-11-02T19:00:00+07:00 --end 2026-11-02T21:00:00+07:00
    python scripts/flow_book_and_notify.py ... --transaction-status capture --fraud-status challenge
    python scripts/flow_book_and_notify.py ... --operator-id <UUID> --check-in

Flow:
    1. Create booking
    2. Send a signed Midtrans notification
    3. Send the same notification again (must be a no-op)
    4. Poll payment status
    5. Operator check-in (optional)
"""

import argparse
import json
import sys

import httpx

from courtease.core.security import create_access_token
from courtease.gateways.midtrans import MidtransGateway

BASE_URL = "http://localhost:8000"


def token_for(profile_id: str) -> str:
    """Sign a short-lived access token for a profile."""
    return create_access_token({"sub": profile_id})


def api_request(token: str | None, method: str, endpoint: str, data: dict | None = None) -> dict:
    """Make an API request, authenticated when a token is given."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    response = httpx.request(
        method,
        f"{BASE_URL}{endpoint}",
        headers=headers,
        json=data,
        timeout=10.0,
        follow_redirects=True,
    )
    return {"status": response.status_code, "data": response.json() if response.text else {}}


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def print_result(result: dict, fields: list[str] | None = None):
    """Print result, optionally filtering fields."""
    if result["status"] >= 400:
        print(f"ERROR ({result['status']}): {json.dumps(result['data'], indent=2)}")
        return False

    print(f"Status: {result['status']}")
    if fields:
        filtered = {k: result["data"].get(k) for k in fields if k in result["data"]}
        print(json.dumps(filtered, indent=2, default=str))
    else:
        print(json.dumps(result["data"], indent=2, default=str))
    return True


def build_notification(order_id: str, gross_amount: int, args: argparse.Namespace) -> dict:
    """Midtrans-shaped notification body with a valid signature."""
    status_code = "200" if args.transaction_status in ("settlement", "capture") else "201"
    amount = f"{gross_amount}.00"
    payload = {
        "order_id": order_id,
        "status_code": status_code,
        "gross_amount": amount,
        "transaction_status": args.transaction_status,
        "payment_type": "bank_transfer",
        "transaction_time": args.transaction_time,
    }
    if args.fraud_status:
        payload["fraud_status"] = args.fraud_status
    payload["signature_key"] = MidtransGateway().compute_signature(order_id, status_code, amount)
    return payload


def main():
    parser = argparse.ArgumentParser(description="Booking and Midtrans notification flow")
    parser.add_argument("--profile-id", required=True, help="Requester profile UUID")
    parser.add_argument("--court-id", required=True, help="Court UUID")
    parser.add_argument("--start", required=True, help="Start time (ISO 8601)")
    parser.add_argument("--end", required=True, help="End time (ISO 8601)")
    parser.add_argument("--transaction-status", default="settlement", help="Midtrans transaction_status")
    parser.add_argument("--fraud-status", default=None, help="Midtrans fraud_status")
    parser.add_argument("--transaction-time", default="2026-11-01 10:00:00", help="WIB transaction time")
    parser.add_argument("--operator-id", default=None, help="Venue operator profile UUID")
    parser.add_argument("--check-in", action="store_true", help="Check the booking in as the operator")
    args = parser.parse_args()

    requester_token = token_for(args.profile_id)

    # Step 1: Create booking
    print_step(1, "Create booking")
    booking_result = api_request(requester_token, "POST", "/api/v1/bookings", {
        "court_id": args.court_id,
        "start_time": args.start,
        "end_time": args.end,
    })
    if not print_result(booking_result, ["booking_id", "status", "payment_status", "price_total", "payment_reference", "payment"]):
        sys.exit(1)

    booking_id = booking_result["data"]["booking_id"]
    reference = booking_result["data"]["payment_reference"]
    price_total = booking_result["data"]["price_total"]
    print(f"\nBooking created: {booking_id} ({reference})")

    # Step 2: Signed notification
    print_step(2, f"Send Midtrans notification ({args.transaction_status})")
    notification = build_notification(reference, price_total, args)
    notify_result = api_request(None, "POST", "/api/v1/payments/midtrans/webhook", notification)
    if not print_result(notify_result):
        sys.exit(1)

    # Step 3: Duplicate delivery
    print_step(3, "Send the same notification again")
    repeat_result = api_request(None, "POST", "/api/v1/payments/midtrans/webhook", notification)
    if not print_result(repeat_result):
        sys.exit(1)

    # Step 4: Poll
    print_step(4, "Poll payment status")
    poll_result = api_request(requester_token, "GET", f"/api/v1/bookings/{booking_id}/payment-status")
    print_result(poll_result, ["status_updated", "outcome", "provider_status", "status_mapping"])

    detail_result = api_request(requester_token, "GET", f"/api/v1/bookings/{booking_id}")
    if not print_result(detail_result, ["status", "payment_status", "payment_completed_at", "payment_expired_at"]):
        sys.exit(1)

    if not (args.check_in and args.operator_id):
        print("\n" + "="*60)
        print("FLOW COMPLETE (skipped operator check-in)")
        print("="*60)
        return

    # Step 5: Operator check-in
    print_step(5, "Operator check-in")
    checkin_result = api_request(
        token_for(args.operator_id),
        "PATCH",
        f"/api/v1/venues/bookings/{booking_id}/status",
        {"action": "check_in"},
    )
    if not print_result(checkin_result, ["id", "status", "payment_status", "checked_in_at"]):
        sys.exit(1)

    print("\n" + "="*60)
    print("FULL FLOW COMPLETE")
    print("="*60)


if __name__ == "__main__":
    main()
