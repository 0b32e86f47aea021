from __future__ import annotations

import re

_SCHEME_RE = re.compile(r"^https?://")


def sanitize_url(url: str) -> str:
    """Reduce a raw URL to the host key used by the store and the provider.

    Only one leading ``http://`` or ``https://`` is removed (case-sensitive),
    then everything from the first ``/`` on is dropped. No validation is done.
    """
    return _SCHEME_RE.sub("", url, count=1).split("/", 1)[0]
