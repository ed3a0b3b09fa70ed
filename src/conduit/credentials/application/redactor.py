"""Exact-match secret redaction for captured output and reports."""

import re
from typing import Iterable, Optional

DEFAULT_MASK = "****"


class Redactor:
    """
    Replace every verbatim occurrence of known secrets with a fixed mask.

    Secrets are matched longest first in a single pass, so a secret that
    contains another secret is masked whole.
    """

    def __init__(self, secrets: Iterable[str] = (), mask: str = DEFAULT_MASK):
        self.mask = mask
        unique = sorted({s for s in secrets if s}, key=len, reverse=True)
        self._pattern: Optional[re.Pattern[str]] = (
            re.compile("|".join(re.escape(s) for s in unique)) if unique else None
        )

    def __bool__(self) -> bool:
        return self._pattern is not None

    def redact(self, text: Optional[str]) -> Optional[str]:
        if not text or self._pattern is None:
            return text
        return self._pattern.sub(self.mask, text)
