from __future__ import annotations

import argparse
import copy
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from platformdirs import user_config_dir

API_KEY_ENV = "GEMINI_API_KEY"

DEFAULTS: dict[str, Any] = {
    "source_lang": "en-US",
    "target_lang": "es-ES",
    "translator": "gemini",
    "gemini_model": "gemini-2.0-flash-exp",
    "gemini_endpoint": "https://generativelanguage.googleapis.com/v1beta",
    "request_timeout_sec": 30.0,
    "temperature": 0.0,
    "top_p": 1.0,
    "max_requests_per_minute": 12,
    "min_request_interval_ms": 5000,
    "rate_buffer_ms": 1000,
    "asr_model": "base",
    "device": None,
    "sr": 16000,
    "chunk_sec": 0.5,
    "rms_th": 250.0,
    "silence_chunks": 2,
    "max_utter_sec": 6.0,
    "debug": False,
}
CONFIG_KEYS: tuple[str, ...] = tuple(DEFAULTS.keys())


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_path: Path


def app_paths() -> AppPaths:
    config_dir = Path(user_config_dir("medlingo", "medlingo"))
    return AppPaths(config_dir=config_dir, config_path=config_dir / "config.json")


def _load_json_dict(path: Path) -> dict[str, Any]:
    # Accept UTF-8 with or without BOM for Windows-edited config files.
    with path.open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"config must be a JSON object: {path}")
    return loaded


def _write_json_dict(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")


def _known_only(payload: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in CONFIG_KEYS:
        if key in payload:
            out[key] = payload[key]
    return out


def load_default_config() -> dict[str, Any]:
    return copy.deepcopy(DEFAULTS)


def ensure_user_config_exists(defaults: dict[str, Any] | None = None) -> Path:
    paths = app_paths()
    if paths.config_path.exists():
        return paths.config_path
    _write_json_dict(paths.config_path, defaults or load_default_config())
    return paths.config_path


def load_user_config(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    defaults = load_default_config()
    if config_path:
        chosen = Path(config_path)
        if not chosen.exists():
            raise SystemExit(f"Config file not found: {chosen}")
    else:
        chosen = ensure_user_config_exists(defaults)
    merged = dict(defaults)
    merged.update(_known_only(_load_json_dict(chosen)))
    return merged, chosen


def resolve_api_key() -> str:
    # The key only ever comes from the environment (or a .env file), never the JSON config.
    load_dotenv()
    return os.getenv(API_KEY_ENV, "").strip()


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="medlingo")
    p.add_argument("--config", default=None, help="JSON config path (CLI flags override config)")
    p.add_argument("--text", default=None, help="translate this text once instead of dictating")
    p.add_argument("--source-lang", default=defaults["source_lang"], help="source speech code, e.g. en-US")
    p.add_argument("--target-lang", default=defaults["target_lang"], help="target speech code, e.g. es-ES")
    p.add_argument("--translator", default=defaults["translator"], choices=["gemini", "stub"])
    p.add_argument("--gemini-model", default=defaults["gemini_model"], help="Gemini model name")
    p.add_argument("--gemini-endpoint", default=defaults["gemini_endpoint"], help="Gemini REST base URL")
    p.add_argument(
        "--request-timeout-sec",
        type=float,
        default=defaults["request_timeout_sec"],
        help="HTTP timeout for one translation call",
    )
    p.add_argument("--temperature", type=float, default=defaults["temperature"])
    p.add_argument("--top-p", type=float, default=defaults["top_p"])
    p.add_argument(
        "--max-requests-per-minute",
        type=int,
        default=defaults["max_requests_per_minute"],
        help="sliding-window request cap",
    )
    p.add_argument(
        "--min-request-interval-ms",
        type=float,
        default=defaults["min_request_interval_ms"],
        help="minimum spacing between two translation calls",
    )
    p.add_argument(
        "--rate-buffer-ms",
        type=float,
        default=defaults["rate_buffer_ms"],
        help="extra wait added once the window is full",
    )
    p.add_argument("--asr-model", default=defaults["asr_model"], help="faster-whisper model size")
    p.add_argument("--device", type=int, default=defaults["device"], help="sounddevice input device id")
    p.add_argument("--sr", type=int, default=defaults["sr"], help="sample rate (Hz)")
    p.add_argument("--chunk-sec", type=float, default=defaults["chunk_sec"], help="mic chunk size in seconds")
    p.add_argument("--rms-th", type=float, default=defaults["rms_th"], help="RMS threshold for speech")
    p.add_argument(
        "--silence-chunks",
        type=int,
        default=defaults["silence_chunks"],
        help="finalize an utterance after this many quiet chunks",
    )
    p.add_argument(
        "--max-utter-sec",
        type=float,
        default=defaults["max_utter_sec"],
        help="finalize while speech continues after this many seconds",
    )
    p.add_argument("--status", action="store_true", help="print rate limit status before exiting")
    p.add_argument("--debug", action="store_true", help="print interim transcripts")
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    pre_args, _ = pre.parse_known_args(argv)
    defaults, _ = load_user_config(config_path=pre_args.config)
    parser = parser_with_defaults(defaults)
    args = parser.parse_args(argv)
    if defaults.get("debug"):
        args.debug = True
    return args
