from typing import MutableMapping, Optional

class MemoryTokenStore:
    """String values kept in a mapping, such as a browser's cookie session."""

    def __init__(self, values: Optional[MutableMapping[str, str]] = None):
        self.values = values if values is not None else {}

    def get(self, key: str) -> Optional[str]:
        value = self.values.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str):
        self.values[key] = value

    def remove(self, key: str):
        self.values.pop(key, None)

class Session:
    """Bearer token holder handed to the API client."""

    def __init__(self, store=None, key: str = "token"):
        self.store = store if store is not None else MemoryTokenStore()
        self.key = key

    @property
    def token(self) -> Optional[str]:
        return self.store.get(self.key)

    def set_token(self, token: str):
        self.store.set(self.key, token)

    def clear_token(self):
        self.store.remove(self.key)

    def is_authenticated(self) -> bool:
        return bool(self.token)
