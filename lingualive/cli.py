"""Command line interface for LinguaLive."""

from __future__ import annotations

import argparse
import asyncio
import pathlib
import re
import sys
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .client import TranslationClient
from .configuration import get_settings
from .errors import (
    ErrorCategory,
    LinguaLiveError,
    OverwriteRefusedError,
    TranslationProviderConfigurationError,
    UnsupportedFileTypeError,
)
from .language import (
    JsonFileLanguageStore,
    LanguageState,
    LanguageStore,
    MemoryLanguageStore,
)
from .policy import FailureSink
from .providers import build_provider
from .session import PageSession
from .structures import PassReport

SUPPORTED_SUFFIXES = {".html", ".htm", ".xhtml"}


@dataclass
class TranslationSummary:
    """Report returned after processing a page."""

    input_path: pathlib.Path
    output_path: pathlib.Path
    provider_name: str
    target_language: str
    page_language: str
    load_report: Optional[PassReport]
    injected_fragments: int
    fragment_reports: List[PassReport]
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)

    @property
    def total(self) -> PassReport:
        combined = self.load_report or PassReport.empty(self.target_language)
        for report in self.fragment_reports:
            combined = combined.merge(report)
        return combined


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lingualive",
        description=(
            "Translate the visible text of an HTML page, including content "
            "injected after it loads."
        ),
    )
    parser.add_argument(
        "input_file",
        help="Path to the .html file to translate.",
    )
    parser.add_argument(
        "-t",
        "--target-language",
        help="Destination language code. Remembered for later runs when a state file is used.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending the target language code.",
    )
    parser.add_argument(
        "-p",
        "--provider",
        help="Translation provider identifier (google or echo).",
    )
    parser.add_argument(
        "--page-language",
        help="Language the page is written in. No full-page pass runs when it matches the target.",
    )
    parser.add_argument(
        "-i",
        "--inject",
        action="append",
        default=[],
        metavar="FRAGMENT",
        help="HTML fragment file appended to the page after loading (repeatable).",
    )
    parser.add_argument(
        "--legacy-bulk",
        action="store_true",
        help="Translate whole display elements instead of individual text nodes.",
    )
    parser.add_argument(
        "--state-file",
        help="JSON file that keeps the selected language between runs.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--debug-provider",
        action="store_true",
        help="Log complete oracle requests and responses for troubleshooting.",
    )
    return parser


def sanitise_language_for_filename(language: str) -> str:
    """Generate a filesystem-friendly suffix from a language descriptor."""

    collapsed = re.sub(r"\s+", "-", language.strip())
    ascii_only = collapsed.encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^A-Za-z0-9\-]+", "", ascii_only)
    return cleaned or "translated"


def derive_output_path(input_path: pathlib.Path, language: str) -> pathlib.Path:
    addition = sanitise_language_for_filename(language)
    return input_path.with_name(f"{input_path.stem}_{addition}{input_path.suffix}")


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError(
            "Input file not found. Please provide a readable .html file."
        )
    if not input_path.is_file():
        raise LinguaLiveError("Input path must be a file.")
    if input_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise UnsupportedFileTypeError(
            "This file type isn’t supported — please use .html or .htm."
        )

    if input_path.resolve() == output_path.resolve():
        raise OverwriteRefusedError(
            "The output path matches the input page. Refusing to overwrite the source file."
        )

    if output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            "The output file already exists — rename or use the overwrite flag."
        )


async def run_session(
    session: PageSession,
    fragments: Sequence[str],
    *,
    verbose: bool,
) -> tuple[Optional[PassReport], List[PassReport], str]:
    """Load the page, inject fragments through the watcher and render it."""

    try:
        load_report = await session.load()
        if verbose:
            if load_report is None:
                print("Target matches the page language; skipped the full-page pass.")
            else:
                print(
                    f"Full-page pass: {load_report.translated_units} of "
                    f"{load_report.total_units} units translated."
                )

        tree = session.tree
        if tree is None:  # pragma: no cover - load always builds a tree
            raise LinguaLiveError("The page has not been loaded yet.")
        for markup in fragments:
            tree.insert_markup(tree.root, markup)

        fragment_reports = await session.settle()
        if verbose and fragments:
            print(
                f"Injected {len(fragments)} fragments in "
                f"{len(fragment_reports)} watcher passes."
            )
        return load_report, fragment_reports, session.render()
    finally:
        await session.aclose()


def execute_translation(
    *,
    input_file: str,
    output_file: str | None,
    target_language: str | None,
    page_language: str,
    default_language: str,
    source_language: str,
    provider: str | None,
    endpoint: str | None,
    timeout: float | None,
    fragment_files: Sequence[str],
    state_file: str | None,
    legacy_bulk: bool,
    force_overwrite: bool,
    verbose: bool,
    provider_debug: bool,
    failure_sink: FailureSink | None = None,
) -> tuple[int, TranslationSummary | None, str | None]:
    """Execute a translation run and return the exit code, summary, and message."""

    start_time = time.time()
    sink = failure_sink if failure_sink is not None else FailureSink()

    store: LanguageStore = (
        JsonFileLanguageStore(pathlib.Path(state_file))
        if state_file
        else MemoryLanguageStore()
    )
    try:
        language_state = LanguageState(store, default=default_language)
        if target_language:
            language_state.remember(target_language)
    except LinguaLiveError as exc:
        return _fail(sink, ErrorCategory.CONFIGURATION, str(exc))
    language = language_state.get()

    input_path = pathlib.Path(input_file).expanduser().resolve()
    output_path = (
        pathlib.Path(output_file).expanduser().resolve()
        if output_file
        else derive_output_path(input_path, language)
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=force_overwrite)
    except FileNotFoundError as exc:
        return _fail(sink, ErrorCategory.FILE_IO, str(exc), str(input_path))
    except LinguaLiveError as exc:
        return 1, None, str(exc)

    try:
        markup = input_path.read_text(encoding="utf-8")
        fragments = [
            pathlib.Path(path).expanduser().read_text(encoding="utf-8")
            for path in fragment_files
        ]
    except OSError as exc:
        return _fail(sink, ErrorCategory.FILE_IO, f"Could not read input: {exc}")

    try:
        oracle = build_provider(
            provider,
            endpoint=endpoint,
            timeout=timeout,
            debug=provider_debug,
        )
    except TranslationProviderConfigurationError as exc:
        return _fail(sink, ErrorCategory.CONFIGURATION, str(exc))

    client = TranslationClient(
        oracle,
        failure_sink=sink,
        source_language=source_language,
    )

    try:
        session = PageSession(
            markup,
            client=client,
            language_state=language_state,
            page_language=page_language,
            bulk_mode=legacy_bulk,
        )
        load_report, fragment_reports, rendered = asyncio.run(
            run_session(session, fragments, verbose=verbose)
        )
    except KeyboardInterrupt:
        return 2, None, "Translation interrupted by user."
    except LinguaLiveError as exc:
        return 1, None, str(exc)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered, encoding="utf-8")
    except OSError as exc:
        return _fail(sink, ErrorCategory.FILE_IO, f"Could not write output: {exc}")

    summary = TranslationSummary(
        input_path=input_path,
        output_path=output_path,
        provider_name=oracle.name,
        target_language=language,
        page_language=page_language,
        load_report=load_report,
        injected_fragments=len(fragments),
        fragment_reports=fragment_reports,
        elapsed_seconds=time.time() - start_time,
        error_messages=sink.messages(),
    )
    return 0, summary, None


def _fail(
    sink: FailureSink,
    category: ErrorCategory,
    message: str,
    details: str | None = None,
) -> tuple[int, None, str]:
    sink.record(category, message, details)
    return 1, None, message


def print_summary(summary: TranslationSummary) -> None:
    """Output a friendly report once processing completes."""

    total = summary.total
    print("\nTranslation complete.")
    print(f"  Input file:      {summary.input_path}")
    print(f"  Output file:     {summary.output_path}")
    print(f"  Provider:        {summary.provider_name}")
    print(f"  Page language:   {summary.page_language}")
    print(f"  Target language: {summary.target_language}")
    if summary.load_report is None:
        print("  Full-page pass:  skipped (page already in target language)")
    print(
        "  Text units:      "
        f"{total.translated_units} translated / {total.total_units} total "
        f"({total.unchanged_units} unchanged, {total.fallback_units} kept original)"
    )
    if summary.injected_fragments:
        print(f"  Injected:        {summary.injected_fragments} fragments")
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.error_messages:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    failure_sink = FailureSink()
    try:
        settings = get_settings()
    except TranslationProviderConfigurationError as exc:
        failure_sink.record(ErrorCategory.CONFIGURATION, "Configuration could not be loaded.")
        print(exc)
        return 1

    exit_code, summary, message = execute_translation(
        input_file=args.input_file,
        output_file=args.output,
        target_language=args.target_language,
        page_language=args.page_language or settings.LINGUALIVE_PAGE_LANGUAGE,
        default_language=settings.LINGUALIVE_DEFAULT_LANGUAGE,
        source_language=settings.LINGUALIVE_SOURCE_LANGUAGE,
        provider=args.provider or settings.LINGUALIVE_PROVIDER,
        endpoint=settings.LINGUALIVE_ENDPOINT,
        timeout=settings.LINGUALIVE_TIMEOUT,
        fragment_files=args.inject,
        state_file=args.state_file or settings.LINGUALIVE_STATE_FILE,
        legacy_bulk=args.legacy_bulk,
        force_overwrite=args.force,
        verbose=args.verbose,
        provider_debug=bool(args.debug_provider or settings.LINGUALIVE_PROVIDER_DEBUG),
        failure_sink=failure_sink,
    )

    if message:
        print(message)
    if summary:
        print_summary(summary)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
