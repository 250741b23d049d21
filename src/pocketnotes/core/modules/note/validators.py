from pocketnotes.errors import ValidationError

TITLE_MAX_LENGTH = 120
BODY_MAX_LENGTH = 5000


def validate_note_input(title: object, body: object) -> tuple[str, str]:
    """Validate note fields and return them trimmed.

    Requirements (checked after trimming surrounding whitespace):
    - title: string, 1 to 120 characters
    - body: string, 1 to 5000 characters

    Raises:
        ValidationError: If either field doesn't meet requirements
    """
    if not isinstance(title, str) or not isinstance(body, str):
        raise ValidationError("Title and body must be strings")

    title = title.strip()
    body = body.strip()

    if not 1 <= len(title) <= TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be 1-{TITLE_MAX_LENGTH} characters, got {len(title)}")

    if not 1 <= len(body) <= BODY_MAX_LENGTH:
        raise ValidationError(f"Body must be 1-{BODY_MAX_LENGTH} characters, got {len(body)}")

    return title, body
