# playjazz_crm/utils/br.py
import re
from urllib.parse import quote


def only_digits(s: str | None) -> str:
    return re.sub(r"\D+", "", s or "")


def whatsapp_link(phone: str | None, message: str) -> str:
    return f"https://wa.me/{only_digits(phone)}?text={quote(message)}"
