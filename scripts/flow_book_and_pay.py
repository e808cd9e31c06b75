#!/usr/bin/env python3
"""
Quote, book and pay for a listing against a running API.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Tokens are minted locally with the identity provider's shared secret, so
the API must run with the same JWT_SECRET_KEY.

Usage:
    python scripts/flow_book_and_pay.py --listing-id <UUID> --start 2026-11-01 --end 2026-12-01
    python scripts/flow_book_and_pay.py --listing-id <UUID> --start 2026-11-01 --end 2026-12-01 \\
        --payment-method pm_card_threeDSecure2Required
    python scripts/flow_book_and_pay.py --listing-id <UUID> --start 2026-11-01 --end 2026-12-01 \\
        --resume pi_sandbox_0123456789abcdef

Flow:
    1. Mint a client token
    2. Quote the date range
    3. Create the booking (pays with the given payment method)
    4. Resume if the payment required customer action
    5. List my bookings
"""

import argparse
import json
import sys

import httpx

from storeaway.core.security import create_access_token

BASE_URL = "http://localhost:8000"

CLIENT_ID = "user-1"
CLIENT_EMAIL = "alex.doe@example.com"
CLIENT_NAME = "Alex Doe"


def api_request(token: str, method: str, endpoint: str, data: dict | None = None) -> dict:
    """Make authenticated API request."""
    headers = {"Authorization": f"Bearer {token}"}
    url = f"{BASE_URL}{endpoint}"

    if method == "GET":
        response = httpx.get(url, headers=headers, timeout=30.0, follow_redirects=True)
    elif method == "POST":
        response = httpx.post(url, headers=headers, json=data or {}, timeout=30.0, follow_redirects=True)
    else:
        raise ValueError(f"Unknown method: {method}")

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
        print(json.dumps(filtered, indent=2))
    else:
        print(json.dumps(result["data"], indent=2))
    return True


def main():
    parser = argparse.ArgumentParser(description="Quote, book and pay for a listing")
    parser.add_argument("--listing-id", required=True, help="Listing UUID")
    parser.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="End date (YYYY-MM-DD)")
    parser.add_argument("--payment-method", default="pm_card_visa", help="Tokenized payment method")
    parser.add_argument("--resume", metavar="PAYMENT_REFERENCE", help="Resume an existing payment instead of paying")
    args = parser.parse_args()

    dates = {"listing_id": args.listing_id, "start_date": args.start, "end_date": args.end}

    # Step 1: Token
    print_step(1, "Mint client token")
    token = create_access_token(CLIENT_ID, CLIENT_EMAIL, CLIENT_NAME, role="client")
    print(f"Acting as {CLIENT_EMAIL}")

    # Step 2: Quote
    print_step(2, "Quote date range")
    quote_result = api_request(token, "POST", "/api/v1/bookings/quote", dates)
    if not print_result(quote_result):
        sys.exit(1)
    quote = quote_result["data"]
    print(f"\n{quote['days']} days at {quote['monthly_rate']}/month = {quote['total']} {quote['currency'].upper()}")

    # Step 3: Book (or resume)
    if args.resume:
        print_step(3, f"Resume payment {args.resume}")
        booking_result = api_request(
            token, "POST", "/api/v1/bookings/resume", {**dates, "payment_reference": args.resume}
        )
    else:
        print_step(3, f"Create booking paying with {args.payment_method}")
        booking_result = api_request(
            token, "POST", "/api/v1/bookings", {**dates, "payment_method_id": args.payment_method}
        )
    if not print_result(booking_result):
        sys.exit(1)

    # Step 4: Customer action
    if booking_result["status"] == 202:
        print_step(4, "Customer action required")
        reference = booking_result["data"]["payment_reference"]
        print("Complete the challenge client-side with the resume token, then run:")
        print(
            f"  python scripts/flow_book_and_pay.py --listing-id {args.listing_id} "
            f"--start {args.start} --end {args.end} --resume {reference}"
        )
        return

    booking_number = booking_result["data"]["booking_number"]
    print(f"\nBooking confirmed: {booking_number}")

    # Step 5: My bookings
    print_step(5, "List my bookings")
    mine = api_request(token, "GET", "/api/v1/bookings")
    if not print_result(mine, ["total"]):
        sys.exit(1)

    print("\n" + "="*60)
    print("FLOW COMPLETE")
    print("="*60)
    print(f"Booking:    {booking_number}")
    print(f"Total Paid: {quote['total']} {quote['currency'].upper()} ({quote['amount_minor']} minor units)")


if __name__ == "__main__":
    main()
