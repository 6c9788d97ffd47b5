from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

import httpx


@dataclass
class ProbeResult:
    ok: bool
    message: str


def _ok(msg: str) -> ProbeResult:
    return ProbeResult(ok=True, message=msg)


def _fail(msg: str) -> ProbeResult:
    return ProbeResult(ok=False, message=msg)


def _check_file(path: Path) -> ProbeResult:
    if path.exists():
        return _ok(f".env exists: {path}")
    return _fail(f".env not found: {path}. Defaults will be used (TIKA_URL=http://tika:9998).")


async def _check_tika(tika_url: str) -> ProbeResult:
    async with httpx.AsyncClient(timeout=5.0) as c:
        try:
            r = await c.get(f"{tika_url.rstrip('/')}/version")
        except Exception as exc:
            return _fail(f"tika {tika_url} unreachable: {exc}")
    if r.status_code == 200:
        return _ok(f"tika {tika_url}: {r.text.strip()}")
    return _fail(f"tika {tika_url}/version -> HTTP {r.status_code}")


async def _check_api(api_base: str) -> List[ProbeResult]:
    out: List[ProbeResult] = []
    base = api_base.rstrip("/")
    async with httpx.AsyncClient(timeout=30.0) as c:
        try:
            health = await c.get(f"{base}/health")
            if health.status_code == 200:
                payload = health.json()
                out.append(_ok(f"{base}/health {payload.get('status')}: engine={payload.get('engine')}"))
            else:
                out.append(_fail(f"{base}/health -> HTTP {health.status_code}"))
        except Exception as exc:
            out.append(_fail(f"{base}/health failed: {exc}"))

        try:
            r = await c.put(
                f"{base}/fulldata",
                content=b"docmeta runtime probe",
                headers={"Content-Type": "text/plain", "File-Name": "probe.txt"},
            )
            if r.status_code == 200:
                payload = json.loads(r.content)
                out.append(_ok(f"PUT /fulldata extracted {len(payload.get('text', ''))} chars"))
            else:
                out.append(_fail(f"PUT /fulldata failed HTTP {r.status_code}"))
        except Exception as exc:
            out.append(_fail(f"PUT /fulldata failed: {exc}"))
    return out


def _print_summary(results: List[ProbeResult], strict: bool) -> int:
    for item in results:
        prefix = "OK" if item.ok else "WARN"
        print(f"- {prefix}: {item.message}")
    ok_count = sum(1 for r in results if r.ok)
    fail_count = len(results) - ok_count
    print(f"\nSummary: {ok_count} passed, {fail_count} warnings/errors")
    if strict and fail_count:
        print("strict mode: failed due to one or more required items\n")
        return 1
    return 0


async def run(project_root: Path, api_base: str, tika_url: str, strict: bool) -> int:
    results: List[ProbeResult] = [_check_file(project_root / ".env")]
    results.append(await _check_tika(tika_url))
    results.extend(await _check_api(api_base))
    return _print_summary(results, strict)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preflight runtime check for the extraction service")
    parser.add_argument("--project-root", default=".", help="Project root directory")
    parser.add_argument("--api-base", default="http://localhost:8080", help="Base URL of the service")
    parser.add_argument("--tika-url", default="http://localhost:9998", help="Base URL of the Tika server")
    parser.add_argument("--strict", action="store_true", help="Fail when any required item fails")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    exit_code = asyncio.run(
        run(
            project_root=Path(args.project_root).resolve(),
            api_base=args.api_base,
            tika_url=args.tika_url,
            strict=args.strict,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
