import secrets
import string
import re
import time
from datetime import date, datetime, timezone
from typing import Optional

def generate_id(prefix: str) -> str:
    suffix = ''.join(secrets.choice(string.ascii_lowercase + string.digits) for i in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"

def generate_password():
    adjectives = ["Happy", "Sunny", "Clever", "Brave", "Calm", "Eager", "Fancy", "Jolly", "Kind", "Lively"]
    nouns = ["Tiger", "Lion", "Eagle", "Panda", "Bear", "Wolf", "Fox", "Hawk", "Owl", "Deer"]

    adj = secrets.choice(adjectives)
    noun = secrets.choice(nouns)
    number = secrets.randbelow(1000)

    return f"{adj}-{noun}-{number:03d}"

def generate_slug(name: str) -> str:
    # Convert to lowercase
    slug = name.lower()
    # Remove special characters
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    # Replace spaces with hyphens
    slug = re.sub(r'\s+', '-', slug)
    return slug.strip('-')

def now_ms() -> int:
    return int(time.time() * 1000)

def utcnow() -> datetime:
    # Naive UTC everywhere in persisted state
    return datetime.now(timezone.utc).replace(tzinfo=None)

def utcnow_aware() -> datetime:
    return datetime.now(timezone.utc)

def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def calculate_age(birth_date: Optional[date], today: Optional[date] = None) -> int:
    if not birth_date:
        return 0
    today = today or utcnow().date()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age

def normalize_email(email: str) -> str:
    return email.strip().lower()
