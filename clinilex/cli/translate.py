"""Translate one utterance from the command line and print the result as JSON.

Examples:
    python -m clinilex.cli.translate --text "my stomach hurts since tuesday" --target es
    python -m clinilex.cli.translate --audio visit.wav --target ko --input en
    python -m clinilex.cli.translate --mic 5 --target fr
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from clinilex.config.defaults import PIPELINE
from clinilex.mt import (
    AudioTranslationRequest,
    InputError,
    TranslationError,
    TranslationOrchestrator,
    TranslationRequest,
    TranslationResult,
    user_message,
)

_AUDIO_TYPES = {
    ".wav": "audio/wav",
    ".webm": "audio/webm",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="clinilex-translate",
        description="Clinical correction + translation for a single utterance",
    )
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--text", help="Text to correct and translate")
    src.add_argument("--audio", metavar="FILE", help="Recorded audio file to transcribe first")
    src.add_argument(
        "--mic", metavar="SECONDS", type=float, help="Record from the microphone for N seconds"
    )

    ap.add_argument(
        "--target",
        default=PIPELINE.target_language,
        help="Target language code. Default: CX_TARGET_LANGUAGE or 'es'",
    )
    ap.add_argument(
        "--input",
        default=PIPELINE.input_language,
        help="Input language code or 'auto'. Default: CX_INPUT_LANGUAGE or 'auto'",
    )
    ap.add_argument("--offline", action="store_true", help="Use the local (Ollama) backend")
    ap.add_argument(
        "--no-correction", action="store_true", help="Skip the correction pass (text mode)"
    )
    ap.add_argument("--simplify", action="store_true", help="Plain-language output")
    ap.add_argument("--dialect", default=PIPELINE.dialect, help="Dialect hint for --simplify")
    return ap


async def _record(seconds: float) -> bytes:
    from clinilex.audio.recorder import SoundDeviceRecorder

    recorder = SoundDeviceRecorder()
    await recorder.open()
    try:
        await asyncio.sleep(seconds)
    except BaseException:
        recorder.abort()
        raise
    return recorder.close()


async def run(
    args: argparse.Namespace, orchestrator: Optional[TranslationOrchestrator] = None
) -> TranslationResult:
    orch = orchestrator or TranslationOrchestrator()

    if args.text is not None:
        return await orch.translate(
            TranslationRequest.create(
                args.text,
                args.target,
                args.input,
                use_offline=args.offline,
                medical_correction=not args.no_correction,
                simplify=args.simplify,
                dialect=args.dialect,
            )
        )

    if args.audio is not None:
        path = Path(args.audio)
        if not path.is_file():
            raise InputError(f"Audio file not found: {path}")
        audio = path.read_bytes()
        filename = path.name
        content_type = _AUDIO_TYPES.get(path.suffix.lower(), "application/octet-stream")
    else:
        audio = await _record(args.mic)
        filename, content_type = "recording.wav", "audio/wav"

    return await orch.translate_audio(
        AudioTranslationRequest(
            audio=audio,
            target_language=args.target,
            input_language=args.input,
            use_offline=args.offline,
            filename=filename,
            content_type=content_type,
        )
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        result = asyncio.run(run(args))
    except InputError as e:
        print(f"error: {user_message(e)}", file=sys.stderr)
        return 2
    except TranslationError as e:
        print(f"error: {user_message(e)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
