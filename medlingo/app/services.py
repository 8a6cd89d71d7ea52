from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from medlingo.app.config import resolve_api_key
from medlingo.app.session import TranslationSession
from medlingo.asr.whisper_stream import WhisperStreamRecognizer
from medlingo.nlp.translator.client import TranslationClient
from medlingo.nlp.translator.factory import get_transport
from medlingo.nlp.translator.rate_limit import RateLimiter


@dataclass(frozen=True)
class AppServices:
    limiter: RateLimiter
    client: TranslationClient
    session: TranslationSession


def build_translation_client(args: Any) -> TranslationClient:
    transport = get_transport(
        str(args.translator),
        settings={
            "api_key": resolve_api_key() if str(args.translator) == "gemini" else "",
            "gemini_model": args.gemini_model,
            "gemini_endpoint": args.gemini_endpoint,
            "request_timeout_sec": args.request_timeout_sec,
        },
    )
    limiter = RateLimiter(
        max_requests_per_minute=max(1, int(args.max_requests_per_minute)),
        min_request_interval_ms=max(0.0, float(args.min_request_interval_ms)),
        buffer_ms=max(0.0, float(args.rate_buffer_ms)),
    )
    return TranslationClient(
        transport,
        limiter=limiter,
        generation_config={"temperature": float(args.temperature), "topP": float(args.top_p)},
    )


def build_services(args: Any) -> AppServices:
    client = build_translation_client(args)
    session = TranslationSession(
        translator=client,
        source_lang=str(args.source_lang),
        target_lang=str(args.target_lang),
    )
    return AppServices(limiter=client.limiter, client=client, session=session)


def build_recognizer(args: Any) -> WhisperStreamRecognizer:
    return WhisperStreamRecognizer(
        model_size=str(args.asr_model),
        sample_rate=int(args.sr),
        chunk_sec=float(args.chunk_sec),
        rms_threshold=float(args.rms_th),
        silence_chunks=max(1, int(args.silence_chunks)),
        max_utter_sec=(
            None if getattr(args, "max_utter_sec", None) is None else float(args.max_utter_sec)
        ),
        input_device=args.device,
    )
