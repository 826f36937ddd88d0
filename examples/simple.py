from __future__ import annotations

import asyncio
import logging
import random

import convoy
from convoy import IterationError, Trace

PAGES = {
    "index": ["about", "blog", "missing"],
    "about": [],
    "blog": ["post-1", "post-2"],
    "post-1": [],
    "post-2": ["index"],
}


async def fetch(url: str) -> list[str]:
    await asyncio.sleep(random.uniform(0.01, 0.05))
    if url not in PAGES:
        raise LookupError(f"404: {url}")
    return PAGES[url]


async def reachable(url: str) -> bool:
    try:
        await fetch(url)
    except LookupError:
        return False
    return True


async def crawl(start: str, limit: int, trace: Trace) -> list[str]:
    """Breadth-first crawl: fetch each frontier with at most ``limit`` requests in flight."""
    seen: set[str] = {start}
    frontier = [start]

    async def step() -> None:
        nonlocal frontier
        alive = await convoy.filter_limit(frontier, limit, reachable, trace=trace)
        links = await convoy.map_limit(alive, limit, fetch, trace=trace)
        frontier = [link for page in links for link in page if link not in seen]
        seen.update(frontier)

    await convoy.whilst(lambda *_: bool(frontier), step)
    return sorted(seen)


async def run_crawl() -> None:
    trace = Trace()
    pages = await crawl("index", limit=2, trace=trace)
    print("visited:", pages)

    sizes = await convoy.map_values({p: p for p in pages}, lambda p, done: done(None, len(p)))
    total = await convoy.reduce(sizes, 0, lambda memo, size, done: done(None, memo + size))
    print("name lengths:", sizes, "total:", total)

    try:
        await convoy.map_series(["index", "missing", "about"], fetch)
    except IterationError as exc:
        print("stopped:", exc.reason, "partial:", exc.partial)

    print("trace events:", len(trace), "iterations:", len(trace.find_all("iteration_end")))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_crawl())
