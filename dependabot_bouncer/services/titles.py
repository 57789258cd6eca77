"""Package identity extraction from Dependabot pull request titles."""

import re
from logging import getLogger

from .github.models import PackageIdentity

logger = getLogger(__name__)

# Dependabot's emoji commit prefix, e.g. "⬆️ (deps): Bump ..."
_BOT_PREFIX = r"⬆️?\s*\(deps\):\s+"

# Ordered, first match wins. Each entry is (pattern, index of the capture group holding the package).
TITLE_PATTERNS: list[tuple[re.Pattern[str], int]] = [
    (re.compile(_BOT_PREFIX + r"bump\s+(\S+)\s+(?:from|to)\b", re.IGNORECASE), 1),
    (re.compile(_BOT_PREFIX + r"bump\s+the\s+(\S+)\s+group\b", re.IGNORECASE), 1),
    (re.compile(r"^bump\s+(\S+)\s+(?:from|to)\b", re.IGNORECASE), 1),
    (re.compile(r"^update\s+(\S+)\s+(?:from|to)\b", re.IGNORECASE), 1),
    (re.compile(r"^chore.*bump\s+(\S+)\s+(?:from|to)\b", re.IGNORECASE), 1),
]

# Module paths that belong to a language's extended standard library and have no owning org.
UNOWNED_PREFIXES = ("golang.org/x/", "google.golang.org/")

# Mirror hosts where the real owner is the second path segment (gopkg.in/Owner/repo.vN).
MIRROR_PREFIXES = ("gopkg.in/",)

# Code hosts using host/owner/repo[/vN] paths.
HOSTING_PREFIXES = ("github.com/",)

_VERSION_SEGMENT = re.compile(r"^v\d")


def parse_title(title: str) -> PackageIdentity:
    """Extract the updated package and its organization from a PR title.

    Examples:
        >>> parse_title("Bump github.com/datadog/datadog-go from 1.0.0 to 2.0.0")
        PackageIdentity(package_name='github.com/datadog/datadog-go', organization_name='datadog')
        >>> parse_title("Bump @datadog/browser-rum from 4.0.0 to 5.0.0")
        PackageIdentity(package_name='@datadog/browser-rum', organization_name='datadog')
        >>> parse_title("Update rails to 7.0.0")
        PackageIdentity(package_name='rails', organization_name='')

    Args:
        title: Free-text pull request title

    Returns:
        PackageIdentity with empty fields when nothing recognizable was found
    """
    package_name = _match_patterns(title) or _fallback_package(title)
    if not package_name:
        logger.debug(f"No package found in title: {title!r}")
        return PackageIdentity()
    return PackageIdentity(package_name=package_name, organization_name=extract_organization(package_name))


def _match_patterns(title: str) -> str:
    for pattern, group in TITLE_PATTERNS:
        match = pattern.search(title)
        if match:
            return match.group(group)
    return ""


def _fallback_package(title: str) -> str:
    """Return the first token after the leading verb that looks like a namespaced package."""
    for token in title.split()[1:]:
        if "/" in token or "@" in token:
            return token
    return ""


def extract_organization(package_name: str) -> str:
    """Determine the owning organization of a package name.

    Args:
        package_name: Package name as extracted from a title

    Returns:
        Organization name, or an empty string when the package has none
    """
    if "/" not in package_name:
        return ""

    if package_name.startswith("@"):
        return package_name.split("/", 1)[0][1:]

    lowered = package_name.lower()
    if lowered.startswith(UNOWNED_PREFIXES):
        return ""

    parts = package_name.split("/")

    if lowered.startswith(MIRROR_PREFIXES):
        return parts[1].lower() if len(parts) > 2 else ""

    if len(parts) >= 3 and lowered.startswith(HOSTING_PREFIXES):
        return parts[1]

    for part in parts[1:]:
        if part and "." not in part and not _VERSION_SEGMENT.match(part):
            return part
    return ""
