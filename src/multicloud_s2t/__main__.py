"""
Command line entry point.

Transcribes SOURCE into DESTINATION, or prints the text when no destination
is given.
"""

import argparse
import logging
import sys

from multicloud_s2t.config import load_config
from multicloud_s2t.dependencies import build_client
from multicloud_s2t.domain.models import (
    ContentRedactionConfig,
    ContentRedactionType,
    Provider,
    RedactionOutput,
    TranscriptionRequest,
)
from multicloud_s2t.exceptions import S2TError
from multicloud_s2t.logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="multicloud-s2t")
    parser.add_argument("source")
    parser.add_argument("destination", nargs="?")
    parser.add_argument("--language", default="")
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider.all()],
        default=Provider.UNSPECIFIED.value,
    )
    parser.add_argument("--temp-bucket", default="")
    parser.add_argument("--redact-pii", action="store_true")
    parser.add_argument("--profanity-filter", action="store_true")
    parser.add_argument("--punctuation", action="store_true")
    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> TranscriptionRequest:
    redaction = ContentRedactionConfig()
    if args.redact_pii:
        redaction = ContentRedactionConfig(
            redaction_type=ContentRedactionType.PII,
            redaction_output=RedactionOutput.REDACTED,
        )
    return TranscriptionRequest(
        provider=Provider(args.provider),
        language_code=args.language,
        content_redaction=redaction,
        profanity_filter=args.profanity_filter,
        enable_automatic_punctuation=args.punctuation,
        temp_bucket=args.temp_bucket,
    )


def main(argv: list[str] | None = None) -> int:
    """Runs one transcription and returns the process exit code."""
    config = load_config()
    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    request = build_request(args)

    with build_client(config) as client:
        try:
            if args.destination:
                client.transcribe(args.source, args.destination, request)
            else:
                result = client.transcribe_direct(args.source, request).result()
                print(result.text)
        except S2TError:
            logger.exception("Transcription failed", extra={"source": args.source})
            return 1

    logger.info("Speech successfully transcribed", extra={"source": args.source})
    return 0


if __name__ == "__main__":
    sys.exit(main())
