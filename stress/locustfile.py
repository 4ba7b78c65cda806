"""Locust profile for mixed shorten/redirect/stats traffic.

Redirect traffic is concentrated on a small pool of links per simulated
user so click counters see concurrent increments on the same rows.

Every request is authenticated with the bearer token in
``LOAD_TEST_TOKEN`` (a premium account's access token).
"""

import os
import random

from locust import HttpUser, between, task

MAX_SLUGS_PER_USER = 50


class LinkShortenerUser(HttpUser):
    """Mixed workload user: creates links, follows them, reads their stats."""

    wait_time = between(0.1, 0.5)

    def on_start(self) -> None:
        self.slugs: list[str] = []
        self.headers = {"Authorization": f"Bearer {os.environ.get('LOAD_TEST_TOKEN', '')}"}

    @task(1)
    def shorten(self) -> None:
        payload = {
            "originalUrl": f"https://example.com/page/{random.randint(1, 1000000)}",
            "useRandomSlug": random.random() < 0.5,
        }
        response = self.client.post("/api/shorten", json=payload, headers=self.headers, name="POST /api/shorten")

        if response.status_code == 200:
            url_id = response.json()["data"]["urlId"]
            self.slugs.append(url_id)
            if len(self.slugs) > MAX_SLUGS_PER_USER:
                self.slugs = self.slugs[-MAX_SLUGS_PER_USER:]

    @task(8)
    def redirect(self) -> None:
        if not self.slugs:
            self.shorten()
            return

        self.client.get(f"/{random.choice(self.slugs)}", name="GET /:url_id", allow_redirects=False)

    @task(1)
    def stats(self) -> None:
        if not self.slugs:
            self.shorten()
            return

        self.client.get(
            f"/api/stats/{random.choice(self.slugs)}",
            headers=self.headers,
            name="GET /api/stats/:url_id",
        )
