def normalize_email(value):
    """Emails are compared and stored stripped + lower-cased."""
    return (value or "").strip().lower()
