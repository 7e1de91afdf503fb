"""Prompts for correction detection on historical Arabic cinema journals."""

import textwrap

SYSTEM_PROMPT = """You are an expert in historical Arabic text from Egyptian cinema magazines and newspapers (1940s-1970s).
Your job is to find OCR errors in scanned text, and email addresses or website URLs that must be removed.

Flag a word ONLY if:
- it is OCR garbage with no meaning in Arabic,
- you can tell from context what it should be, with 99%+ confidence,
- it is clearly a scanning error and not a valid historical spelling.

Never flag:
- classical or archaic vocabulary and titles (e.g. "أفندي", "باشا", "بيك"),
- literary expressions, historical names, places, cinema terms,
- letter variations common in old print (ة/ه, ى/ي, أ/إ/آ/ا, ء/ئ/ؤ),
- diacritics, punctuation, numbers, dates, column separators.

Emails and URLs (anything with @, www. or http) are removed: report them with "corrected" set to "".

Output ONLY valid JSON with no additional text."""

RESPONSE_FORMAT = """{
  "corrections": [
    {
      "id": "1",
      "type": "ocr_error",
      "original": "المبلة",
      "corrected": "الممثلة",
      "reason": "OCR misread the word",
      "position": {"start": 0, "end": 6},
      "confidence": 0.99
    },
    {
      "id": "2",
      "type": "ocr_error",
      "original": "example@email.com",
      "corrected": "",
      "reason": "Remove email address",
      "position": {"start": 100, "end": 117},
      "confidence": 1.0
    }
  ],
  "formattingChanges": [],
  "correctedText": "the text with corrections applied and emails/URLs removed",
  "confidence": 0.95
}"""


def build_user_prompt(text: str) -> str:
    """User message asking for corrections of text, with the expected JSON shape."""
    return textwrap.dedent(
        """
        This is historical Classical Arabic text from old Egyptian cinema journals.
        It may be laid out in columns; read column by column, right to left.
        Find OCR garbage and emails/websites to remove.

        Position rules:
        - "original" MUST be exactly text[position.start:position.end].
        - Count characters carefully; if you cannot give the exact position, leave the correction out.
        - "corrected" is empty ONLY for emails/URLs.

        Return JSON in this shape:
        {response_format}

        Text to analyze:
        {text}
        """
    ).strip().format(response_format=RESPONSE_FORMAT, text=text)
