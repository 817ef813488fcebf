from collections.abc import Container

ANONYMOUS = "anon"


def allocate_name(base: str, taken: Container[str]) -> str:
    """Return base if free, otherwise the first free base-1, base-2, ...

    Allocation does not reserve the name; callers insert it while still holding
    whatever lock guards `taken`.
    """
    base = base.strip() or ANONYMOUS
    if base not in taken:
        return base
    i = 1
    while f"{base}-{i}" in taken:
        i += 1
    return f"{base}-{i}"
