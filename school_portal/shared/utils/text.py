from typing import Any, Iterable


def format_branch_name(name: str | None) -> dict[str, str] | None:
    """
    Split "Company - Location" into its parts.

    " - " wins over a bare "-"; a name without a separator has no location.
    """
    if not name:
        return None
    for separator in (" - ", "-"):
        if separator in name:
            company, _, location = name.partition(separator)
            return {"company": company.strip(), "location": location.strip()}
    return {"company": name, "location": ""}


def matches_search(term: str | None, *values: Any) -> bool:
    """Case-insensitive substring match on any non-empty value."""
    if not term:
        return True
    needle = term.lower()
    return any(value not in (None, "") and needle in str(value).lower() for value in values)


def unique_values(records: Iterable[dict[str, Any]], key: str) -> list[str]:
    """Sorted distinct truthy values of records[key]."""
    return sorted({str(r[key]) for r in records if r.get(key)})


def clean_text(value: Any) -> str | None:
    """Trimmed string, or None when blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
