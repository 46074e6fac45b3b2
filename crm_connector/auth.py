import base64
from dataclasses import dataclass
from typing import Any, Dict, Optional

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class Credential:
    """Static credential: ``none``, ``bearer`` or ``basic``."""

    kind: str = "none"
    token: str = ""
    username: str = ""
    password: str = ""

    @classmethod
    def none(cls) -> "Credential":
        return cls()

    @classmethod
    def bearer(cls, token: str) -> "Credential":
        return cls(kind="bearer", token=token or "")

    @classmethod
    def basic(cls, username: str, password: str) -> "Credential":
        return cls(
            kind="basic", username=username or "", password=password or ""
        )

    @classmethod
    def from_admin_config(
        cls, auth_cfg: Optional[Dict[str, Any]]
    ) -> "Credential":
        """
        Build a credential from an admin-config blob:
          {"subType": "BEARER_TOKEN", "properties": {"bearerToken": ...}}
          {"subType": "BASIC_AUTH", "properties": {"basicAuthUsername": ...,
                                                   "basicAuthPassword": ...}}
        Anything else means no credential.
        """
        props = (auth_cfg or {}).get("properties")
        if not props:
            return cls.none()
        sub_type = (auth_cfg or {}).get("subType", "")
        if sub_type == "BEARER_TOKEN":
            return cls.bearer(props.get("bearerToken", ""))
        if sub_type == "BASIC_AUTH":
            return cls.basic(
                props.get("basicAuthUsername", ""),
                props.get("basicAuthPassword", ""),
            )
        return cls.none()

    def authorization(self) -> Optional[str]:
        if self.kind == "bearer" and self.token:
            return f"Bearer {self.token}"
        if self.kind == "basic" and self.username and self.password:
            raw = f"{self.username}:{self.password}".encode("utf-8")
            return "Basic " + base64.b64encode(raw).decode("ascii")
        return None


def build_headers(credential: Optional[Credential]) -> Dict[str, str]:
    headers = dict(JSON_HEADERS)
    value = (credential or Credential.none()).authorization()
    if value:
        headers["Authorization"] = value
    return headers
