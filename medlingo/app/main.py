from __future__ import annotations

import logging
import sys
import threading
import traceback

from medlingo.app.config import resolve_args
from medlingo.app.diagnostics import hint_for_error_kind, hint_for_recognizer_error, summarize_exception
from medlingo.app.logging_setup import setup_app_logger
from medlingo.app.services import build_recognizer, build_services
from medlingo.app.session import TranslationSession


def _print_outcome(session: TranslationSession) -> int:
    err = session.last_error
    if err is not None:
        print(f"Error: {err.message}", file=sys.stderr)
        hint = hint_for_error_kind(err.kind)
        if hint:
            print(f"Hint: {hint}", file=sys.stderr)
        return 1
    print(session.translated_text)
    return 0


def _dictate(session: TranslationSession, args, logger: logging.Logger) -> None:
    recognizer = build_recognizer(args)
    last_shown = {"text": ""}

    def _on_change(s: TranslationSession) -> None:
        if s.source_text != last_shown["text"]:
            last_shown["text"] = s.source_text
            if args.debug:
                print(f"\r{s.source_text}", end="", flush=True)

    session.on_change = _on_change
    worker = threading.Thread(
        target=session.listen,
        args=(recognizer,),
        name="medlingo-dictation",
        daemon=True,
    )
    print("Listening... press Ctrl+C to stop and translate.")
    worker.start()
    try:
        while worker.is_alive():
            worker.join(timeout=0.2)
    except KeyboardInterrupt:
        logger.info("dictation_interrupted")
    finally:
        # the worker discards interim text itself once the recognizer drains
        recognizer.stop()
        worker.join()
        session.on_change = None
    print()

    if session.last_error is not None and session.last_error.source == "recognizer":
        summary = summarize_exception(session.last_error.message)
        print(f"Recognizer error: {summary}", file=sys.stderr)
        print(f"Hint: {hint_for_recognizer_error(summary)}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    logger, log_path = setup_app_logger(
        level=logging.DEBUG if args.debug else logging.INFO,
        console=bool(args.debug),
    )
    logger.info("app_start", extra={"config_path": str(args.config or ""), "translator": args.translator})

    try:
        services = build_services(args)
    except ValueError as e:
        logger.exception("services_init_failed")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    session = services.session
    if args.text is not None:
        session.set_source_text(args.text)
    else:
        try:
            _dictate(session, args, logger)
        except Exception:
            logger.exception("dictation_crash")
            print(f"Dictation failed: {summarize_exception(traceback.format_exc())}", file=sys.stderr)
            print(f"See log: {log_path}", file=sys.stderr)

    print(f"Source ({session.source_lang}): {session.source_text.strip()}")
    if session.detected_terms:
        print(f"Medical terms: {', '.join(session.detected_terms)}")
    stats = session.source_stats
    print(f"Words: {stats.words}  Characters: {stats.chars}")

    session.translate()
    code = _print_outcome(session)

    if args.status:
        st = services.limiter.status()
        print(
            f"Requests in last minute: {st.requests_in_last_minute}/{st.max_requests_per_minute} "
            f"(remaining {st.remaining_requests})"
        )
    logger.info("app_exit", extra={"code": code})
    return code


if __name__ == "__main__":
    raise SystemExit(main())
