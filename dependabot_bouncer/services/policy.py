"""Deny-list evaluation for package identities."""

from collections.abc import Iterable


def is_denied(
    package_name: str,
    organization_name: str,
    denied_packages: Iterable[str],
    denied_orgs: Iterable[str],
) -> bool:
    """Check whether a package or its organization is on a deny list.

    Args:
        package_name: Package name extracted from a PR title (may be empty)
        organization_name: Owning organization (may be empty)
        denied_packages: Package rules (exact, version-qualified with "@", or wildcard with "*")
        denied_orgs: Organization names

    Returns:
        True if any package rule or organization matches
    """
    return deny_reason(package_name, organization_name, denied_packages, denied_orgs) is not None


def deny_reason(
    package_name: str,
    organization_name: str,
    denied_packages: Iterable[str],
    denied_orgs: Iterable[str],
) -> str | None:
    """Return a human-readable reason if the package is denied, otherwise None.

    Package rules are evaluated in order and the first match wins; the
    organization check runs only when no package rule matched.
    """
    if package_name:
        for rule in denied_packages:
            if matches_package_rule(package_name, rule):
                return f"package '{rule}' is denied"

    if organization_name:
        org = organization_name.lower()
        for denied in denied_orgs:
            if denied.strip().lower() == org:
                return f"org '{organization_name}' is denied"

    return None


def matches_package_rule(package_name: str, rule: str) -> bool:
    """Match a single deny rule against a package name, case-insensitively.

    Rule forms:
        "*x*"  package contains x
        "*x"   package ends with x
        "x*"   package starts with x
        "pkg"  exact name, or exact name once an "@version" suffix is removed from the package
        "pkg@v1"  package contains the rule, so "pkg@v1" denies "pkg@v1.2.3"

    An unqualified rule never matches a longer name that only shares a prefix:
    "aws-sdk-go" does not deny "aws-sdk-go-v2".
    """
    pkg = package_name.lower()
    denied = rule.strip().lower()
    if not pkg or not denied:
        return False

    if "*" in denied:
        needle = denied.strip("*")
        leading = denied.startswith("*")
        trailing = denied.endswith("*")
        if leading and trailing:
            return needle in pkg
        if leading:
            return pkg.endswith(needle)
        if trailing:
            return pkg.startswith(needle)
        # Interior wildcards are not supported
        return False

    if pkg == denied:
        return True

    if "@" in denied:
        return denied in pkg

    at = pkg.find("@")
    return at > 0 and pkg[:at] == denied
