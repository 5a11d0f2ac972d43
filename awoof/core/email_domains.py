"""Student Email Domains — pure checks on institutional email addresses.

Invariants:
    - Domains compared lowercase
    - A student address must end with one of STUDENT_EMAIL_SUFFIXES
    - A university-specific domain narrows, never widens, acceptance
"""

import json

STUDENT_EMAIL_SUFFIXES = (".edu", ".edu.ng", ".ac.ng", ".sch.ng")


def email_domain(email: str) -> str | None:
    """Return the lowercased part after '@', or None when absent."""
    _, sep, domain = email.rpartition("@")
    if not sep or not domain:
        return None
    return domain.lower()


def has_student_suffix(domain: str) -> bool:
    return domain.lower().endswith(STUDENT_EMAIL_SUFFIXES)


def domain_matches(domain: str, university_domain: str | None) -> bool:
    """True when the university has no domain or the email domain ends with it."""
    if not university_domain:
        return True
    return domain.lower().endswith(university_domain.lower())


def parse_email_domains(value: str | list[str] | None) -> list[str]:
    """Accept a list, a JSON array string, or a comma-separated string."""
    if not value:
        return []
    if isinstance(value, list):
        return [v.strip() for v in value if v and v.strip()]
    stripped = value.strip()
    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(v).strip() for v in parsed if str(v).strip()]
    return [part.strip() for part in stripped.split(",") if part.strip()]


def is_valid_student_email(email: str, accepted_domains: list[str] | None = None) -> bool:
    """Student suffix required; when the university lists domains, one must match."""
    domain = email_domain(email)
    if not domain or not has_student_suffix(domain):
        return False
    if not accepted_domains:
        return True
    return any(domain_matches(domain, accepted) for accepted in accepted_domains)
