"""Throughput sanity benchmark for chunked streaming.

Streams a temporary file through the sync and async chunk streams and reports
MB/s and reads issued. Meant for manual runs, not CI.
"""

import asyncio
import os
import tempfile
import time

from rangeserve import open_range, open_range_sync

SIZE = 64 * 1024 * 1024


def bench_sync(path):
    started = time.perf_counter()
    _, chunks = open_range_sync(path, None, "application/octet-stream")
    total = sum(len(c) for c in chunks)
    elapsed = time.perf_counter() - started
    print(f"sync:  {total / elapsed / 1e6:8.1f} MB/s  ({total // chunks.max_chunk_size + 1} chunks)")


async def bench_async(path):
    started = time.perf_counter()
    _, stream = await open_range(path, "bytes=0-", "application/octet-stream")
    total = 0
    async for chunk in stream:
        total += len(chunk)
    elapsed = time.perf_counter() - started
    print(f"async: {total / elapsed / 1e6:8.1f} MB/s  (window {stream.window.start}-{stream.window.end})")


if __name__ == "__main__":
    print("rangeserve streaming benchmark")
    print("=" * 40)

    with tempfile.NamedTemporaryFile(delete=False) as f:
        f.write(os.urandom(SIZE))
        path = f.name
    try:
        bench_sync(path)
        asyncio.run(bench_async(path))
    finally:
        os.unlink(path)
