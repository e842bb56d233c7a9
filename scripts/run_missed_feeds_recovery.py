#!/usr/bin/env python3
"""Executa a recuperação de missed feeds para um ou mais tenants.

Uso (agendado via cron/Cloud Scheduler):
    python scripts/run_missed_feeds_recovery.py --tenant 123456 --tenant 789 \
        --topic orders_v2 --max-age-hours 24

Padrao: executa de fato; use --dry-run para apenas contar.
Sai com status 1 se alguma execução falhar.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from app.bootstrap import build_container, initialize_app, validate_runtime_settings
from config.settings import SUPPORTED_WEBHOOK_TOPICS


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--tenant",
        action="append",
        required=True,
        help="Tenant (user_id do vendedor). Pode ser repetido.",
    )
    parser.add_argument(
        "--topic",
        action="append",
        choices=SUPPORTED_WEBHOOK_TOPICS,
        help="Restringe a recuperação ao tópico. Pode ser repetido.",
    )
    parser.add_argument(
        "--max-age-hours",
        type=int,
        default=None,
        help="Ignora feeds enviados há mais de N horas (1..168).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Conta o que seria processado sem executar handlers.",
    )
    args = parser.parse_args(argv)
    if args.max_age_hours is not None and not 1 <= args.max_age_hours <= 168:
        parser.error("--max-age-hours deve estar entre 1 e 168")
    return args


async def run(args: argparse.Namespace) -> int:
    validate_runtime_settings()
    container = build_container()
    failures = 0
    try:
        for tenant_id in args.tenant:
            try:
                result = await container.recovery.recover_all_missed_feeds(
                    tenant_id,
                    topics=args.topic,
                    max_age_hours=args.max_age_hours,
                    dry_run=args.dry_run,
                )
            except Exception as exc:
                failures += 1
                print(f"[{tenant_id}] falhou: {type(exc).__name__}: {exc}", file=sys.stderr)
                continue

            mode = "dry-run" if args.dry_run else "apply"
            print(
                f"[{mode}] tenant={tenant_id} processed={result.processed} "
                f"failed={result.failed} skipped={result.skipped} "
                f"total={result.total} duration_ms={result.duration_ms}"
            )
    finally:
        await container.aclose()
    return 1 if failures else 0


def main() -> None:
    initialize_app()
    args = parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
