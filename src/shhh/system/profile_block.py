"""Helpers for the shhh-managed block inside a shell profile."""

from shhh.system.base import MANAGED_BLOCK_END, MANAGED_BLOCK_START


def extract_managed_block(content: str) -> str:
    """Return the text between the markers, or "" if there is no complete block."""
    start = content.find(MANAGED_BLOCK_START)
    if start == -1:
        return ""
    end = content.find(MANAGED_BLOCK_END)
    if end == -1 or end <= start:
        return ""
    return content[start + len(MANAGED_BLOCK_START) : end].strip()


def replace_managed_block(profile: str, block: str) -> str:
    """
    Replace the managed block in a profile with new content.

    A profile without a complete block gets one appended at the end.
    """
    section = f"{MANAGED_BLOCK_START}\n{block}\n{MANAGED_BLOCK_END}\n"

    start = profile.find(MANAGED_BLOCK_START)
    end = profile.find(MANAGED_BLOCK_END)

    if start == -1 or end == -1 or end <= start:
        if profile and not profile.endswith("\n"):
            profile += "\n"
        return profile + section

    end_of_marker = end + len(MANAGED_BLOCK_END)
    if profile[end_of_marker : end_of_marker + 1] == "\n":
        end_of_marker += 1

    return profile[:start] + section + profile[end_of_marker:]
