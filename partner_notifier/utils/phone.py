"""Phone number helpers for the SMS channel."""

import re

DEFAULT_COUNTRY_CODE = "1"


def format_phone_number(phone_number: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Normalize a phone number to E.164 form.

    Numbers already starting with "+" are returned unchanged. Otherwise all
    non-digit characters are stripped, a 10-digit national number gets the
    default country code, and the result is prefixed with "+".

    Example:
        >>> format_phone_number("(555) 123-4567")
        '+15551234567'
        >>> format_phone_number("+44 20 7946 0958")
        '+44 20 7946 0958'
    """
    if phone_number.startswith("+"):
        return phone_number

    digits = re.sub(r"\D", "", phone_number)
    if len(digits) == 10:
        digits = country_code + digits

    return "+" + digits
