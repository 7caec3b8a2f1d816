"""Masking helpers for contact details shown to providers."""


def mask_email(email: str) -> str:
    """Mask an email address, keeping only enough to recognise it.

    ``maria.santos@example.com`` becomes ``m***s@e***.com``.
    """
    local, _, domain = email.partition("@")
    if not local or not domain:
        return "***@***.***"

    last_char = local[-1] if len(local) > 1 else ""
    masked_local = f"{local[0]}***{last_char}"
    domain_name, _, tld = domain.partition(".")
    masked_domain = f"{domain_name[:1]}***.{tld}"

    return f"{masked_local}@{masked_domain}"
