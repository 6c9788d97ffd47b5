from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from docmeta.dependencies import Container
from docmeta.models.extraction import OperationSelector


async def main(path: Path, opkey: str, content_type: str) -> int:
    selector = OperationSelector.parse(opkey)
    if selector is None:
        print(f"unknown operation: {opkey}", file=sys.stderr)
        return 2
    headers = {"File-Name": path.name, "Content-Length": str(path.stat().st_size)}
    if content_type:
        headers["Content-Type"] = content_type

    container = Container()
    try:
        outcome = await container.extraction.handle_upload(selector, path.read_bytes(), headers)
    finally:
        await container.close()

    if not outcome.ok or outcome.result is None:
        print(f"extraction failed: {outcome.failure.value if outcome.failure else 'unknown'} {outcome.detail}", file=sys.stderr)
        return 1
    body = json.loads(outcome.result.body.decode(outcome.result.encoding))
    print(json.dumps(body, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Extract a local file through the configured Tika server")
    parser.add_argument("path", type=Path)
    parser.add_argument("--op", default="fulldata", help="metadata | text | fulldata")
    parser.add_argument("--content-type", default="", help="Declared content type (default: sniff)")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.path, args.op, args.content_type)))
