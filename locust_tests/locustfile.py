"""
Aggrekart Pilot Load Test — Locust Script
==========================================
Simulates pilots on shift: OTP login, location pings, nearby-order polling and scans,
plus a handful of support staff working the ticket console.

Usage:
    python manage.py seed_demo_orders --count 200 --pilots 50
    locust -f locust_tests/locustfile.py --host=http://localhost:8000 \
           --users=300 --spawn-rate=30 --run-time=5m --headless

PILOT_PHONES matches the numbers seed_demo_orders --pilots gives its approved pilots.
The server must run with PILOT_OTP_ECHO=True so the OTP comes back in the login response.
"""

import random

from locust import HttpUser, between, events, task
from locust.exception import StopUser

# Approved pilot phone numbers in the target database
PILOT_PHONES = [f"98765{n:05d}" for n in range(1, 51)]
STAFF_TOKEN  = None   # paste a staff JWT here to enable SupportConsoleUser

CENTRE = (20.2961, 85.8245)


def _jitter(lat, lng, spread=0.05):
    return round(lat + random.uniform(-spread, spread), 6), round(lng + random.uniform(-spread, spread), 6)


class PilotUser(HttpUser):
    """A pilot between deliveries: pings location, polls nearby orders, scans one now and then."""
    wait_time = between(1.0, 3.0)
    weight    = 10
    token     = None

    def on_start(self):
        phone = random.choice(PILOT_PHONES)
        resp = self.client.post("/api/pilot/login", json={"phoneNumber": phone}, name="/api/pilot/login [request]")
        otp = resp.json().get("data", {}).get("otp") if resp.status_code == 200 else None
        if not otp:
            raise StopUser()

        resp = self.client.post("/api/pilot/login", json={"phoneNumber": phone, "otp": otp},
                                name="/api/pilot/login [verify]")
        if resp.status_code != 200:
            raise StopUser()
        self.token = resp.json()["data"]["token"]
        self.lat, self.lng = _jitter(*CENTRE)
        self._seen_orders = []

    def _headers(self):
        return {"Authorization": f"Bearer {self.token}"}

    # ── Tasks (weighted) ──────────────────────────────────────────────────────

    @task(5)
    def poll_nearby_orders(self):
        resp = self.client.get(
            "/api/pilot/available-nearby-orders",
            params={"radius": random.choice([5, 10, 15]), "limit": 10},
            headers=self._headers(),
            name="/api/pilot/available-nearby-orders",
        )
        if resp.status_code == 200:
            self._seen_orders = [o["orderId"] for o in resp.json()["data"]["orders"]]

    @task(3)
    def ping_location(self):
        self.lat, self.lng = _jitter(self.lat, self.lng, spread=0.005)
        self.client.post(
            "/api/pilot/update-location",
            json={"latitude": self.lat, "longitude": self.lng},
            headers=self._headers(),
            name="/api/pilot/update-location",
        )

    @task(2)
    def scan_order(self):
        if not self._seen_orders:
            return
        with self.client.post(
            "/api/pilot/scan-order",
            json={"orderId": random.choice(self._seen_orders)},
            headers=self._headers(),
            name="/api/pilot/scan-order",
            catch_response=True,
        ) as resp:
            # Another pilot may have taken it since the last poll
            if resp.status_code == 404:
                resp.success()

    @task(1)
    def dashboard(self):
        self.client.get("/api/pilot/dashboard/stats", headers=self._headers(), name="/api/pilot/dashboard/stats")

    @task(1)
    def app_config(self):
        self.client.get("/api/pilot/app/config", name="/api/pilot/app/config")


class SupportConsoleUser(HttpUser):
    """Support staff (fewer, heavier queries)."""
    wait_time = between(2, 5)
    weight    = 1

    def on_start(self):
        if not STAFF_TOKEN:
            raise StopUser()

    def _h(self):
        return {"Authorization": f"Bearer {STAFF_TOKEN}"}

    @task(3)
    def open_tickets(self):
        self.client.get("/api/support/admin/tickets", params={"status": "open"}, headers=self._h(),
                        name="/api/support/admin/tickets")

    @task(1)
    def analytics(self):
        self.client.get("/api/support/admin/analytics", headers=self._h(), name="/api/support/admin/analytics")

    @task(1)
    def health_check(self):
        self.client.get("/api/health/deep/", name="/api/health/deep/")


# ── Custom events for Locust reporting ────────────────────────────────────────
@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\n=== Aggrekart Pilot Load Test Complete ===")
    stats = environment.stats.total
    print(f"Total requests:      {stats.num_requests}")
    print(f"Failures:            {stats.num_failures}")
    print(f"Avg response time:   {stats.avg_response_time:.0f}ms")
    print(f"95th percentile:     {stats.get_response_time_percentile(0.95):.0f}ms")
    print(f"Requests/sec:        {stats.current_rps:.1f}")
    if stats.num_failures / max(stats.num_requests, 1) > 0.01:
        print("⚠ FAILURE RATE > 1%")
    else:
        print("✓ System stable under load")
