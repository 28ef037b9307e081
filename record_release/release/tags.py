"""Release tag naming.

Explicit mode, the single-job post phase and finalize mode must agree on the
tag for a given version, so they all go through format_git_tag.
"""

from __future__ import annotations


def format_git_tag(
    *,
    version: str,
    release_prefix: str | None,
    application_name: str | None,
) -> str:
    """Build the tag for ``version``.

    ``<release_prefix>-v<version>`` when a prefix is configured, otherwise
    ``<application_name>-v<version>``. Plain ``v<version>`` is only used when
    the ledger did not report an application name either.
    """
    prefix = (release_prefix or "").strip() or (application_name or "").strip()
    if not prefix:
        return f"v{version}"
    return f"{prefix}-v{version}"
