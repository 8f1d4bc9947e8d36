"""
Script to reprocess calls whose AI analysis failed.

Loads the client's calls with processing_status = 'error' (or a single call),
runs each stored transcript through the call processor again and prints the
outcome.

Usage:
    python scripts/reprocess_errored_calls.py <client_id> [--call-id ID] [--transcript-file PATH] [--yes]

Example:
    python scripts/reprocess_errored_calls.py acme --yes
    python scripts/reprocess_errored_calls.py acme --call-id 0b6c1f1e-... --transcript-file call.txt
"""

import asyncio
import sys
import os
import logging
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from call_analysis.database import close_db_pool, get_db_pool
from call_analysis.repositories import CallRepository, ObjectionRepository
from call_analysis.services import build_call_processor

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

USAGE = "Usage: python scripts/reprocess_errored_calls.py <client_id> [--call-id ID] [--transcript-file PATH] [--yes]"


def _option(args: list[str], name: str) -> Optional[str]:
    """Value following a --flag, or None when the flag is absent."""
    if name not in args:
        return None
    idx = args.index(name)
    if idx + 1 >= len(args):
        print(f"Missing value for {name}")
        print(USAGE)
        sys.exit(1)
    return args[idx + 1]


async def reprocess_errored_calls(
    client_id: str,
    call_id: Optional[str] = None,
    transcript_file: Optional[str] = None,
    assume_yes: bool = False,
) -> int:
    """Reprocess errored calls for a client. Returns the number that failed again."""

    pool = await get_db_pool()
    call_repo = CallRepository(pool)
    objection_repo = ObjectionRepository(pool)

    if call_id:
        call = await call_repo.find_by_id(call_id, client_id)
        if not call:
            logger.error(f"Call {call_id} not found for client {client_id}")
            return 1
        calls = [call]
    else:
        calls = await call_repo.find_errored(client_id)

    if not calls:
        logger.info(f"No errored calls for client {client_id}")
        return 0

    override_transcript = None
    if transcript_file:
        if len(calls) != 1:
            logger.error("--transcript-file can only be used together with --call-id")
            return 1
        with open(transcript_file, encoding="utf-8") as f:
            override_transcript = f.read()

    print("\n" + "="*60)
    print(f"CALLS TO REPROCESS ({len(calls)}):")
    print("="*60)
    for call in calls:
        error = call["processing_error"] or ""
        print(f"  {call['call_id']}: {call['prospect_name'] or '-'} ({call['attendance'] or 'no state'})")
        if error:
            print(f"      Last error: {error[:100]}..." if len(error) > 100 else f"      Last error: {error}")
    print("="*60 + "\n")

    # Ask for confirmation before processing (skip if --yes flag passed)
    if assume_yes:
        confirm = 'y'
    else:
        try:
            confirm = input(f"Reprocess {len(calls)} call(s)? (y/n): ")
        except EOFError:
            logger.info("No input provided, skipping reprocessing")
            return 0

    if confirm.lower() != 'y':
        logger.info("Reprocessing cancelled")
        return 0

    processor = build_call_processor(pool)

    failed = 0
    for call in calls:
        cid = str(call["call_id"])
        transcript = override_transcript if override_transcript is not None else call["transcript_text"]
        if not transcript:
            logger.warning(f"Call {cid} has no stored transcript, skipping")
            failed += 1
            continue

        logger.info(f"Reprocessing call {cid}...")
        result = await processor.process_call(cid, client_id, transcript)

        if result.success:
            print(f"  ✅ {cid}: {result.outcome} "
                  f"({result.objection_count} objections, ${result.cost_usd}, {result.processing_time_ms}ms)")
            for row in await objection_repo.find_by_call_id(cid, client_id):
                status = "overcome" if row["resolved"] else "not overcome"
                print(f"      {row['objection_type']} ({status}): {row['objection_text'] or '-'}")
        else:
            failed += 1
            print(f"  ❌ {cid}: {result.error}")

    print("\n" + "="*60)
    print(f"Reprocessed {len(calls) - failed}/{len(calls)} call(s) successfully")
    print("="*60 + "\n")
    return failed


async def main(argv: list[str]) -> int:
    client_id = argv[0]
    try:
        return await reprocess_errored_calls(
            client_id,
            call_id=_option(argv, "--call-id"),
            transcript_file=_option(argv, "--transcript-file"),
            assume_yes="--yes" in argv,
        )
    finally:
        await close_db_pool()


if __name__ == "__main__":
    if len(sys.argv) < 2 or sys.argv[1].startswith("--"):
        print(USAGE)
        print("Example: python scripts/reprocess_errored_calls.py acme --yes")
        sys.exit(1)

    failures = asyncio.run(main(sys.argv[1:]))
    sys.exit(1 if failures else 0)
