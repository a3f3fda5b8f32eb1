from __future__ import annotations


class NameMissingError(ValueError):
    """
    Raised when a device's uevent file carries no NAME attribute.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"couldn't find name in {path}")
        self.path = path
