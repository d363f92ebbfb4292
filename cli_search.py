"""Terminal client that reuses the in-process ranking service."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, List

from livesearch.catalog import ElasticsearchCatalogReader, InMemoryCatalogReader
from livesearch.config import settings
from livesearch.errors import BackendUnavailable
from livesearch.es_client import get_client
from livesearch.models import ResultItem
from livesearch.ranking import RankingService

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def build_service(catalog: Path | None) -> RankingService:
    if catalog is not None:
        return RankingService(InMemoryCatalogReader.from_file(catalog))
    return RankingService(ElasticsearchCatalogReader(get_client(), settings.es_index))


def pretty_print_results(query: str, results: List[ResultItem]) -> None:
    print(f"Query: {query} | results: {len(results)}")
    for idx, item in enumerate(results, start=1):
        color = RED if item.outOfStock else GREEN
        print(
            f"  {idx:02d}. {item.title} | {item.category} | {item.price} | "
            f"{color}{item.availability}{RESET}"
        )


def run_query(service: RankingService, query: str, limit: int) -> None:
    try:
        results = service.search(query, limit)
    except BackendUnavailable as exc:
        print(f"{RED}Search failed: {exc}{RESET}")
        return
    pretty_print_results(query, results)


def interactive_shell(service: RankingService, limit: int) -> None:
    print("Interactive product search. Type 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not query:
            continue
        if query.lower() in {"exit", "quit"}:
            return
        run_query(service, query, limit)


def batch_mode(service: RankingService, file_path: Path, limit: int) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            run_query(service, query, limit)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the live product search")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--catalog", type=Path, help="Rank over a JSON catalog file instead of Elasticsearch")
    parser.add_argument("--limit", type=int, default=settings.default_limit, help="Number of results to show")
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        service = build_service(args.catalog)
    except BackendUnavailable as exc:
        print(f"{RED}{exc}{RESET}")
        return 1

    if args.batch:
        batch_mode(service, args.batch, args.limit)
        return 0
    if args.query:
        run_query(service, args.query, args.limit)
        return 0
    interactive_shell(service, args.limit)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
