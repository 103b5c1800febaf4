from contacthub.schemas import common, contact

__all__ = [
    "common",
    "contact",
]
