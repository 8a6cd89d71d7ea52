from __future__ import annotations

from medlingo.contracts import ErrorKind


def summarize_exception(detail: str, *, max_len: int = 220) -> str:
    text = str(detail or "").strip()
    if not text:
        return "Unknown error."
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    for ln in reversed(lines):
        if ln.startswith(("File ", "^", "Traceback ")):
            continue
        out = ln
        break
    else:
        out = lines[-1]
    if len(out) > max_len:
        return out[: max_len - 3].rstrip() + "..."
    return out


def hint_for_recognizer_error(summary: str) -> str:
    s = str(summary or "").lower()
    if "sounddevice" in s and "not installed" in s:
        return "Install the microphone backend: python -m pip install sounddevice"
    if "microphone" in s:
        return "Microphone init failed. Check the input device id (--device) and mic permissions."
    if "faster-whisper" in s or "no module named" in s:
        return "The speech model could not be loaded. Reinstall dependencies and retry."
    if "unsupported language" in s:
        return "Pick one of the supported source languages."
    return "You can keep typing and translating; start dictation again when ready."


def hint_for_error_kind(kind: ErrorKind | None) -> str:
    if kind == ErrorKind.RATE_LIMIT_EXCEEDED:
        return "Wait a minute before translating again."
    if kind == ErrorKind.PERMISSION_DENIED:
        return "Check GEMINI_API_KEY in your environment or .env file."
    if kind == ErrorKind.MODEL_UNAVAILABLE:
        return "Check --gemini-model and that your key can access it."
    if kind == ErrorKind.TRANSPORT_ERROR:
        return "Check your network connection and retry."
    return ""
