import argparse
import os
import random
import statistics
import time

from fastapi.testclient import TestClient

from docsearch.core import config
from docsearch.db import repo
from docsearch.main import create_app


def _random_text(words, count):
    return " ".join(random.choice(words) for _ in range(count))


def _percentiles(latencies):
    p50 = statistics.median(latencies)
    p95 = statistics.quantiles(latencies, n=100)[94]
    return p50, p95


def _timed_search(client, query, page):
    start = time.perf_counter()
    response = client.get("/api/search", params={"q": query, "page": page})
    if response.status_code != 200:
        raise SystemExit(f"Unexpected status: {response.status_code}")
    return (time.perf_counter() - start) * 1000, response.json()["fromCache"]


def main() -> None:
    parser = argparse.ArgumentParser(description="Search benchmark")
    parser.add_argument("--docs", type=int, default=10000)
    parser.add_argument("--queries", type=int, default=500)
    parser.add_argument("--threshold-ms", type=float, default=100.0)
    args = parser.parse_args()

    if not os.getenv("DB_PATH"):
        os.environ["DB_PATH"] = "./data/benchmark.db"

    config.get_settings.cache_clear()
    app = create_app()
    client = TestClient(app)

    words = ["alpha", "beta", "gamma", "delta", "epsilon", "zeta", "theta", "pdf", "api"]
    conn = app.state.db
    lock = app.state.db_lock

    for idx in range(args.docs):
        content = _random_text(words, 40)
        name = f"{random.choice(words)}_report_{idx}.txt"
        repo.insert_document(conn, lock, name, name, content, len(content), "text/plain")

    cold, cached = [], []
    for _ in range(args.queries):
        query = random.choice(words)
        latency, from_cache = _timed_search(client, query, random.randint(1, 5))
        (cached if from_cache else cold).append(latency)

    for label, latencies in (("cold", cold), ("cached", cached)):
        if len(latencies) < 2:
            print(f"{label}: not enough samples")
            continue
        p50, p95 = _percentiles(latencies)
        print(f"{label}: n={len(latencies)} p50={p50:.2f}ms p95={p95:.2f}ms")

    if len(cached) >= 2:
        _, p95 = _percentiles(cached)
        if p95 > args.threshold_ms:
            raise SystemExit(f"cached p95 {p95:.2f}ms exceeded threshold {args.threshold_ms}ms")


if __name__ == "__main__":
    main()
