from __future__ import annotations

import re
from typing import List, Sequence

REDACTED_VALUE = "<redacted>"
SENSITIVE_FLAGS = (
    "--root-password",
    "--password",
)

_URL_CREDENTIALS_RE = re.compile(r"(\bhttps?://)[^/\s:@]+:[^/\s@]+@")


def redact_args(args: Sequence[str]) -> List[str]:
    """
    Mask values of password-bearing flags in both `--flag=value` and
    `--flag value` forms. Secret payloads travel over stdin and never
    reach this function.
    """
    out: List[str] = []
    mask_next = False
    for arg in args:
        text = str(arg)
        if mask_next:
            out.append(REDACTED_VALUE)
            mask_next = False
            continue
        flag, sep, _ = text.partition("=")
        if flag in SENSITIVE_FLAGS:
            if sep:
                out.append(f"{flag}={REDACTED_VALUE}")
            else:
                out.append(text)
                mask_next = True
            continue
        out.append(redact_text(text))
    return out


def redact_text(text: str) -> str:
    if not text:
        return ""
    return _URL_CREDENTIALS_RE.sub(rf"\1{REDACTED_VALUE}@", str(text))
