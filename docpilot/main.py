#!/usr/bin/env python3
"""Main entry point for the Legal Document Copilot.

This module provides the command-line entry point with:
- CLI argument parsing for configuration
- Settings, logging and orchestrator initialization
- One analysis per invocation, optionally followed by a chat turn
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

import msgspec
from loguru import logger

from docpilot.agents import DocumentChatAgent
from docpilot.context_assembler import build_context
from docpilot.error_handling import DocPilotError, InvalidRequestError
from docpilot.logging_config import setup_logging
from docpilot.models import SUPPORTED_LANGUAGES, AnalysisRequest
from docpilot.orchestrator import DocumentAnalysisOrchestrator, build_metadata, create_orchestrator
from docpilot.settings import load_settings
from memory.session_store import ChatSessionStore


def _read_document(file_path: str) -> str:
    path = Path(file_path)
    if not path.is_file():
        raise InvalidRequestError(f"File not found: {file_path}")
    return path.read_text(encoding="utf-8")


async def run_analysis(args: argparse.Namespace, orchestrator: DocumentAnalysisOrchestrator) -> dict:
    """Analyze one document and optionally answer one chat question.

    Args:
        args: Parsed command-line arguments
        orchestrator: Configured orchestrator

    Returns:
        Dictionary with the analysis result and, if asked, the chat reply
    """
    document_text = _read_document(args.file)

    user_role = args.role
    if not user_role:
        role_outcome = await orchestrator.suggest_user_role(document_text)
        user_role = role_outcome.value_or(None)
        if not user_role:
            raise InvalidRequestError("Could not suggest a user role, please pass --role")
        logger.info(f"Using suggested user role: {user_role}")

    request = AnalysisRequest(
        document_text=document_text,
        user_role=user_role,
        language_code=args.language
    )

    result, document_type = await asyncio.gather(
        orchestrator.analyze(request),
        orchestrator.detect_document_type(document_text)
    )
    metadata = build_metadata(document_type, user_role)

    output = {
        "metadata": msgspec.to_builtins(metadata),
        "analysis": msgspec.to_builtins(result),
    }

    if args.ask:
        store = ChatSessionStore()
        session = store.create_session(build_context(result, metadata))
        chat_agent = DocumentChatAgent(orchestrator.runner, orchestrator.validator)
        reply = await chat_agent.respond(session, args.ask, store=store)
        output["chat"] = msgspec.to_builtins(reply)

    return output


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="docpilot",
        description="Legal Document Copilot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a lease as the tenant
  docpilot analyze lease.txt --role Tenant

  # Analyze in Hindi and ask a follow-up question
  docpilot analyze lease.txt --role Tenant --language hi --ask "Can I sublet?"
        """
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    analyze = subparsers.add_parser("analyze", help="Analyze a plain-text legal document")

    analyze.add_argument("file", type=str, help="Path to a UTF-8 text file")

    analyze.add_argument(
        "--role",
        type=str,
        default=None,
        help="Your role in the document, e.g. Tenant (default: suggested from the document)"
    )

    analyze.add_argument(
        "--language",
        type=str,
        choices=sorted(SUPPORTED_LANGUAGES),
        default="en",
        help="Output language code (default: en)"
    )

    analyze.add_argument(
        "--ask",
        type=str,
        default=None,
        help="Ask one follow-up question about the analyzed document"
    )

    analyze.add_argument(
        "--model-name",
        type=str,
        default=None,
        help="Gemini model name (default: from DOCPILOT_MODEL env var)"
    )

    # Logging Configuration
    analyze.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)"
    )

    analyze.add_argument(
        "--log-dir",
        type=str,
        default=os.getenv("LOG_DIR", "logs"),
        help="Directory for log files (default: logs)"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Process exit code
    """
    args = parse_arguments(argv)

    setup_logging(log_dir=args.log_dir, level=args.log_level)

    try:
        settings = load_settings(model_name=args.model_name)
        logger.info(f"API Key: {settings.masked_key()}")
        logger.info(f"Model: {settings.model_name}")

        orchestrator = create_orchestrator(settings)
        output = asyncio.run(run_analysis(args, orchestrator))

    except DocPilotError as e:
        message = getattr(e, "user_message", None) or str(e)
        logger.error(f"Analysis failed: {e}")
        print(f"Error: {message}", file=sys.stderr)
        return 1

    print(msgspec.json.format(msgspec.json.encode(output), indent=2).decode("utf-8"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
