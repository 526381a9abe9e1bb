"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Race one item across overlapping events
  locust -f locustfile.py --tags lifecycle    # Race allocation status changes
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

The reservation core does not create inventory. Point LOCUST_ITEM_IDS at
existing item ids (comma separated), e.g. LOCUST_ITEM_IDS=1,2,3.
"""

import os
import random
from datetime import date, timedelta
from locust import HttpUser, task, between, tag, events

ITEM_IDS = [int(i) for i in os.environ.get("LOCUST_ITEM_IDS", "1").split(",") if i.strip()]

# Shared state
EVENT_IDS = []
RACE_EVENT_IDS = []
ALLOCATION_IDS = []


def actor_headers():
    return {"X-Actor-Id": str(random.randint(1, 500))}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print(f"SETUP: racing items {ITEM_IDS}")
    print("="*60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users reserve the same item for overlapping events

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    Three events share days with each other. After the test, verify no item
    is reserved for two overlapping events:
      SELECT r1.item_id FROM reservations r1
      JOIN reservations r2 ON r1.item_id = r2.item_id AND r1.id < r2.id
      JOIN events e1 ON e1.id = r1.event_id
      JOIN events e2 ON e2.id = r2.event_id
      WHERE e1.start_date <= e2.end_date AND e2.start_date <= e1.end_date;
    Should return no rows
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = actor_headers()

        if not RACE_EVENT_IDS:
            start = date.today() + timedelta(days=random.randint(30, 300))
            for offset, length in [(0, 3), (2, 2), (3, 3)]:
                first = start + timedelta(days=offset)
                resp = self.client.post("/api/v1/events/",
                    json={
                        "name": f"Race Event {first.isoformat()}",
                        "location": "Test",
                        "start_date": first.isoformat(),
                        "end_date": (first + timedelta(days=length - 1)).isoformat(),
                    },
                    headers=self.headers
                )
                if resp.status_code == 201:
                    RACE_EVENT_IDS.append(resp.json()["id"])
            print(f"\n✓ Created overlapping events {RACE_EVENT_IDS}\n")

    @tag("concurrency")
    @task
    def reserve_contested_item(self):
        """All users fight for the same items across overlapping events."""
        if not RACE_EVENT_IDS:
            return

        with self.client.post("/api/v1/reservations",
            json={"item_id": random.choice(ITEM_IDS), "event_id": random.choice(RACE_EVENT_IDS)},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: overlapping reservation exists
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class LifecycleUser(HttpUser):
    """
    TEST 2: Allocation lifecycle under contention

    Run: locust -f locustfile.py --tags lifecycle -u 50 -r 10 --run-time 60s

    Users allocate items and then race each other to advance the same
    allocations. 409 means another user moved it first.
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = actor_headers()

    @tag("lifecycle")
    @task(1)
    def allocate(self):
        if not EVENT_IDS:
            start = date.today() + timedelta(days=random.randint(1, 90))
            resp = self.client.post("/api/v1/events/",
                json={"name": "Lifecycle Event", "start_date": start.isoformat(), "end_date": start.isoformat()},
                headers=self.headers)
            if resp.status_code == 201:
                EVENT_IDS.append(resp.json()["id"])
            return

        with self.client.post(f"/api/v1/events/{random.choice(EVENT_IDS)}/allocations",
            json={"item_id": random.choice(ITEM_IDS), "pickup_location": "Dock 1"},
            headers=self.headers,
            name="/api/v1/events/{id}/allocations",
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                ALLOCATION_IDS.append(resp.json()["id"])
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: item already allocated to the event
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("lifecycle")
    @task(5)
    def advance(self):
        if not ALLOCATION_IDS:
            return

        target = random.choice(["Picked Up", "Returned"])
        with self.client.post(f"/api/v1/allocations/{random.choice(ALLOCATION_IDS)}/status",
            json={"status": target},
            headers=self.headers,
            name="/api/v1/allocations/{id}/status",
            catch_response=True
        ) as resp:
            if resp.status_code in [200, 409]:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("lifecycle")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = actor_headers()

    @tag("edge")
    @task
    def invalid_event_id(self):
        """Reserve for a non-existent event."""
        with self.client.post("/api/v1/reservations",
            json={"item_id": ITEM_IDS[0], "event_id": 999999},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def inverted_range(self):
        """Create an event that ends before it starts."""
        with self.client.post("/api/v1/events/",
            json={"name": "Backwards", "start_date": "2030-05-10", "end_date": "2030-05-01"},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_status(self):
        """Advance an allocation to a status that does not exist."""
        with self.client.post("/api/v1/allocations/1/status",
            json={"status": "Lost"},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/reservations",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_actor(self):
        """Reserve without X-Actor-Id."""
        with self.client.post("/api/v1/reservations",
            json={"item_id": ITEM_IDS[0], "event_id": 1},
            catch_response=True
        ) as resp:
            if resp.status_code == 401:
                resp.success()
            else:
                resp.failure(f"Expected 401, got {resp.status_code}")
