#!/usr/bin/env python
"""Walk through the dashboard endpoints.

Usage:
    python examples/dashboard_demo.py [YYYY-MM-DD] [YYYY-MM-DD]

This script demonstrates:
1. The activity summary (counts and latest transactions)
2. A ranged report (current month, or the dates given)
3. The all-time report with monthly trends
4. How invalid dates are reported

Prerequisites:
    - PostgreSQL running with the dairy tables populated
    - API running (uvicorn app.main:app --reload --port 5000)
"""

import json
import sys

import httpx

API_BASE = "http://localhost:5000"


def print_section(title: str) -> None:
    """Print a section header."""
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}\n")


def print_response(response: httpx.Response, label: str = "") -> dict:
    """Print HTTP response details."""
    content_type = response.headers.get("content-type", "")
    data = response.json() if "json" in content_type else {}
    status_mark = "✓" if response.status_code < 400 else "✗"
    print(f"{status_mark} {label} [{response.status_code}]")
    if data:
        print(json.dumps(data, indent=2, default=str))
    return data


def main() -> int:
    """Run the dashboard demo."""
    print_section("DairyLedger - Dashboard Demo")

    client = httpx.Client(base_url=API_BASE, timeout=30)

    try:
        health = client.get("/health")
        if health.status_code != 200:
            print(f"API not healthy: {health.status_code}")
            return 1
    except httpx.ConnectError:
        print(f"Cannot connect to API at {API_BASE}")
        print("Start the API with: uvicorn app.main:app --reload --port 5000")
        return 1

    print("✓ API is healthy")

    print_section("Step 1: Activity Summary")
    print_response(client.get("/dashboard/summary"), "GET /dashboard/summary")

    print_section("Step 2: Ranged Report")
    params = {}
    if len(sys.argv) >= 3:
        params = {"from": sys.argv[1], "to": sys.argv[2]}
    report = print_response(client.get("/dashboard", params=params), "GET /dashboard")
    if summary := report.get("summary"):
        print(f"\n→ Period: {report['dateRange']['from']} .. {report['dateRange']['to']}")
        print(f"→ Gross profit: {summary['grossProfit']}")

    print_section("Step 3: All-Time Report")
    print_response(client.get("/dashboard/all-time"), "GET /dashboard/all-time")

    print_section("Step 4: Invalid Date")
    print_response(
        client.get("/dashboard", params={"from": "2024-02-30", "to": "2024-03-31"}),
        "GET /dashboard?from=2024-02-30",
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
