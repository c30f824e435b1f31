"""Short, normalized ticket names for QR code labels."""

import re

_AFFIX_WORDS = "ticket|kaartje|billet|biglietto"
_PREFIX = re.compile(rf"^({_AFFIX_WORDS})[\s:_-]*", re.IGNORECASE)
_SUFFIX = re.compile(rf"[\s:_-]*({_AFFIX_WORDS})$", re.IGNORECASE)
_SEPARATORS = re.compile(r"[\s\-_]+")

MAX_SHORT_NAME_LENGTH = 20


def short_ticket_name(ticket_name: str) -> str:
    """
    Shorten a ticket type name for printing next to its QR code.

    Strips the word "ticket" (Dutch, English, French and Italian forms) from
    either end, removes separators, truncates and uppercases. Printing it
    beside the code makes a QR code harder to pass off as another ticket type.

    Example:
        short_ticket_name("Youth Ticket") -> "YOUTH"
    """
    short = _PREFIX.sub("", ticket_name)
    short = _SUFFIX.sub("", short)
    short = _SEPARATORS.sub("", short)
    return short[:MAX_SHORT_NAME_LENGTH].upper()
