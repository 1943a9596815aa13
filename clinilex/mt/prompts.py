"""Prompt builders for the correction and translation passes."""

from __future__ import annotations

import json


def correction_system_prompt(input_language: str) -> str:
    return (
        "You are an expert Audio Transcriber.\n"
        f"Your task is to fix phonetic errors, typos, and grammar in the INPUT LANGUAGE ({input_language}).\n"
        "\n"
        "Rules:\n"
        f"1. Do NOT translate. Keep the output in {input_language}.\n"
        '2. Fix "homophones" (words that sound similar but are wrong).\n'
        "3. Output ONLY the fixed text. No intros."
    )


def correction_user_prompt(text: str) -> str:
    return f'Raw Input: "{text}"'


def style_instruction(simplify: bool, dialect: str) -> str:
    if simplify:
        return f"Style: Simple, everyday language for a layperson. Dialect: {dialect}."
    return "Style: Formal clinical terminology. Precise definitions."


def translation_system_prompt(
    input_language: str, target_language: str, *, simplify: bool, dialect: str
) -> str:
    return (
        f"You are an expert Medical Interpreter fluent in {input_language}, English, "
        f"and {target_language}.\n"
        "\n"
        "TASK:\n"
        f"Translate the input text ({input_language}) into two formats.\n"
        "\n"
        "OUTPUT JSON FORMAT:\n"
        "{\n"
        '  "original": "The input text",\n'
        '  "corrected": "ENGLISH CLINICAL TRANSLATION",\n'
        f'  "translated": "TARGET LANGUAGE ({target_language}) TRANSLATION",\n'
        '  "confidence": 0.95\n'
        "}\n"
        "\n"
        "CRITICAL RULES:\n"
        '1. "corrected": MUST ALWAYS BE ENGLISH. It is the medical summary for the doctor.\n'
        '   - If Input is "머리가 아파요" (Korean) -> "corrected" must be '
        '"Patient reports headache" (English).\n'
        "\n"
        f'2. "translated": MUST ALWAYS BE {target_language}.\n'
        f"   - It must be a direct translation from {input_language} to {target_language}.\n"
        "   - Preserve the nuance of the original input.\n"
        "\n"
        f"{style_instruction(simplify, dialect)}"
    )


def translation_user_prompt(text: str, input_language: str, target_language: str) -> str:
    return json.dumps(
        {"text": text, "sourceLanguage": input_language, "targetLanguage": target_language},
        ensure_ascii=False,
    )
