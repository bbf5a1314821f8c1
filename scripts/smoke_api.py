#!/usr/bin/env python3
"""Smoke test for the booking API against a running server."""

import sys
from typing import Any

import httpx


BASE_URL = "http://127.0.0.1:8000"


def check_services() -> str | None:
    """List active services and return the first id."""
    print("=" * 60)
    print("Testing GET /services")
    print("=" * 60)

    try:
        response = httpx.get(f"{BASE_URL}/services", timeout=15.0)
        response.raise_for_status()

        data = response.json()
        print(f"✅ Success! {data['results']} active services:\n")
        for service in data["data"]:
            print(f"  {service['name']} ({service['formattedDuration']}, {service['formattedPrice']})")

        if not data["data"]:
            print("⚠️  No services; run scripts/seed_services.py first")
            return None
        return data["data"][0]["_id"]
    except httpx.HTTPStatusError as e:
        print(f"❌ HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return None
    except Exception as e:
        print(f"❌ Error: {e}")
        return None


def check_booking(service_id: str) -> bool:
    """Create (or reuse) a client and book the given service."""
    print("\n" + "=" * 60)
    print("Testing POST /clients and POST /bookings")
    print("=" * 60)

    client_payload: dict[str, Any] = {
        "firstName": "Smoke",
        "lastName": "Test",
        "email": "smoke.test@recovery-mail.com",
        "phone": "+447700900123",
    }

    try:
        response = httpx.post(f"{BASE_URL}/clients", json=client_payload, timeout=15.0)
        response.raise_for_status()
        client = response.json()["data"]
        print(f"✅ {response.json()['message']}: {client['_id']}")

        response = httpx.post(
            f"{BASE_URL}/bookings",
            json={"clientId": client["_id"], "serviceId": service_id, "urgencyLevel": "standard"},
            timeout=15.0,
        )
        response.raise_for_status()
        booking = response.json()["data"]
        print(f"✅ Booking {booking['reference']} ({booking['status']})")

        response = httpx.post(f"{BASE_URL}/bookings", json={}, timeout=15.0)
        if response.status_code != 400:
            print(f"❌ Expected 400 for empty booking, got {response.status_code}")
            return False
        print(f"✅ Empty booking rejected: {response.json()['message']}")
        return True
    except httpx.HTTPStatusError as e:
        print(f"❌ HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return False
    except Exception as e:
        print(f"❌ Error: {e}")
        return False


def check_dashboard() -> bool:
    """Print the analytics summary."""
    print("\n" + "=" * 60)
    print("Testing GET /dashboard/analytics")
    print("=" * 60)

    try:
        response = httpx.get(f"{BASE_URL}/dashboard/analytics", timeout=15.0)
        response.raise_for_status()

        data = response.json()["data"]
        print("✅ Success!")
        print(f"  Bookings: {data['totalBookings']}")
        print(f"  Revenue: {data['totalRevenue']}")
        print(f"  Success rate: {data['successRate']}%")
        print(f"  Breakdown: {data['statusBreakdown']}")
        return True
    except httpx.HTTPStatusError as e:
        print(f"❌ HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return False
    except Exception as e:
        print(f"❌ Error: {e}")
        return False


def main():
    """Run all checks."""
    print("\n🚀 Testing Recovery Office Bookings API\n")

    try:
        httpx.get(f"{BASE_URL}/health", timeout=5.0)
        print("✅ Server is running\n")
    except Exception:
        print("❌ Server is not running!")
        print("   Please start it with: uvicorn app.main:app --reload --port 8000")
        sys.exit(1)

    service_id = check_services()
    if service_id:
        check_booking(service_id)
    check_dashboard()

    print("\n" + "=" * 60)
    print("✅ Checks complete!")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
