#!/usr/bin/env python3
"""
Basic usage examples for Backflow.
"""

import asyncio
import logging
import zlib

from backflow import (
    Readable,
    Writable,
    Transform,
    StreamHooks,
    StreamConfig,
    END,
    pipeline,
    finished,
)


class ListSink(StreamHooks):
    """Writable backend that appends every chunk to a list."""
    
    def __init__(self):
        self.items = []
    
    def write(self, stream, chunk, cb):
        self.items.append(chunk)
        # Pretend the device is slow
        stream.loop.call_later(0.001, cb, None)
    
    def final(self, stream, cb):
        print(f"Sink flushed {len(self.items)} chunks")
        cb(None)


async def example_push_and_iterate():
    """Example: Push chunks by hand and iterate them."""
    print("\n=== Push and Iterate Example ===")
    
    r = Readable()
    for word in ["hello", "backpressured", "world"]:
        r.push(word)
    r.push(END)
    
    async for chunk in r:
        print(f"Got: {chunk}")


async def example_backpressure():
    """Example: A fast source piped into a slow sink."""
    print("\n=== Backpressure Example ===")
    
    sink = ListSink()
    source = Readable.from_iterable(range(1000), high_water_mark=16, byte_length=lambda chunk: 1)
    writer = Writable(sink, high_water_mark=8, byte_length=lambda chunk: 1)
    
    drains = []
    writer.on("drain", lambda: drains.append(source.readable_length))
    source.pipe(writer)
    
    await finished(writer)
    print(f"Delivered {len(sink.items)} items, drained {len(drains)} times")
    print(f"Source buffer never exceeded its mark: {max(drains) <= source.high_water_mark}")


async def example_pipeline():
    """Example: Compress text through a transform pipeline."""
    print("\n=== Pipeline Example ===")
    
    compressor = zlib.compressobj()
    compressed = []
    
    def compress(stream, chunk, cb):
        stream.push(compressor.compress(chunk))
        cb(None)
    
    def flush(stream, cb):
        stream.push(compressor.flush())
        cb(None)
    
    done = asyncio.get_running_loop().create_future()
    pipeline(
        Readable.from_iterable(f"line {i}\n" for i in range(200)),
        Transform(transform=compress, flush=flush, map_writable=str.encode),
        Writable(write=lambda stream, chunk, cb: (compressed.append(chunk), cb(None))),
        callback=done.set_result,
    )
    
    err = await done
    data = b"".join(compressed)
    print(f"Pipeline finished (error={err!r}), {len(data)} compressed bytes")
    print(f"Round trip ok: {zlib.decompress(data).decode().count('line')} lines")


async def example_errors():
    """Example: A failing sink tears the whole pipeline down."""
    print("\n=== Error Handling Example ===")
    
    def write(stream, chunk, cb):
        cb(IOError("disk full") if chunk == 3 else None)
    
    streams = (
        Readable.from_iterable(range(10)),
        Writable(write=write),
    )
    done = asyncio.get_running_loop().create_future()
    pipeline(*streams, callback=done.set_result)
    
    err = await done
    print(f"Pipeline failed with: {err!r}")
    print(f"All streams destroyed: {all(stream.destroyed for stream in streams)}")


async def run_examples():
    await example_push_and_iterate()
    await example_backpressure()
    await example_pipeline()
    await example_errors()


def main():
    """Run all examples."""
    print("=== Backflow Examples ===")
    logging.basicConfig(level=logging.INFO)
    
    # Configure Backflow
    StreamConfig.set_defaults(
        high_water_mark=64 * 1024,
        write_error_policy='report',
    )
    
    asyncio.run(run_examples())
    
    print("\n=== All examples completed! ===")


if __name__ == "__main__":
    main()
