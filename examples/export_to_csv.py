#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import sys

from laakhay.export import MessagesExporter, MessagesRequest, RelativeRange
from laakhay.export.config import DEFAULT_ELASTICSEARCH_URL
from laakhay.export.runtime import ElasticsearchClient, EngineExportBackend, StaticIndexResolver
from laakhay.export.sinks import CsvChunkWriter


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Export matching messages from Elasticsearch as CSV")
    p.add_argument("query", nargs="?", default="")
    p.add_argument("--url", default=DEFAULT_ELASTICSEARCH_URL)
    p.add_argument("--index", action="append", default=[], help="index to search (repeatable)")
    p.add_argument("--stream", action="append", default=[], help="stream id to restrict to (repeatable)")
    p.add_argument("--range", type=int, default=300, help="relative range in seconds")
    p.add_argument("--fields", default="timestamp,source,message")
    p.add_argument("--limit", type=int, default=None)
    p.add_argument("--chunk-size", type=int, default=1000)
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    request = MessagesRequest(
        time_range=RelativeRange(range=args.range),
        streams=frozenset(args.stream) or None,
        query_string=args.query,
        fields_in_order=tuple(f.strip() for f in args.fields.split(",") if f.strip()),
        limit=args.limit,
        chunk_size=args.chunk_size,
    )

    async with ElasticsearchClient(args.url) as client:
        backend = EngineExportBackend(client, StaticIndexResolver(args.index or ["graylog_deflector"]))
        writer = CsvChunkWriter(sys.stdout)
        result = await MessagesExporter(backend).export(request, writer)

    print(
        f"# {result.messages_delivered} messages in {result.chunks_delivered} chunks ({result.state.value})",
        file=sys.stderr,
    )


if __name__ == "__main__":
    asyncio.run(main())
