import random
import re
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def random_suffix(k: int = 6) -> str:
    return "".join(random.choices(_BASE36, k=k))


def generate_slug(name: str | None = None) -> str:
    """
    Public branch slug: {name-in-kebab}-{6 base36 chars}
    Ex: "Sede Norte #2" -> sede-norte-2-k3j9x0
    Non-ascii letters are dropped, like the intake URLs expect.
    """
    base = re.sub(r"[^a-z0-9]+", "-", (name or "sucursal").lower()).strip("-")
    return f"{base}-{random_suffix()}"


def generate_upload_name(ext: str) -> str:
    """Ex: 1760699295123-a8k2mz.png"""
    millis = int(time.time() * 1000)
    return f"{millis}-{random_suffix()}.{ext}"
