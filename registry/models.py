"""Firebase registry records as returned by `firebase ... --json`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

ACTIVE_STATE = "ACTIVE"


@dataclass
class RemoteApp:
    """One app registered in a Firebase project."""

    app_id: str
    display_name: str = ""
    platform: str = ""  # "ANDROID", "IOS", "WEB"
    namespace: str = ""  # bundle id or package name, whichever applies
    bundle_id: str = ""
    package_name: str = ""
    project_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RemoteApp":
        return cls(
            app_id=data.get("appId") or "",
            display_name=data.get("displayName") or "",
            platform=data.get("platform") or "",
            namespace=data.get("namespace") or "",
            bundle_id=data.get("bundleId") or "",
            package_name=data.get("packageName") or "",
            project_id=data.get("projectId") or "",
        )

    def identifier_for(self, identifier_kind: str) -> str:
        """The platform-specific identifier field (bundle_id or package_name)."""
        return self.bundle_id if identifier_kind == "bundle_id" else self.package_name


@dataclass
class RemoteProject:
    project_id: str
    display_name: str = ""
    project_number: str = ""
    state: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RemoteProject":
        return cls(
            project_id=data.get("projectId") or "",
            display_name=data.get("displayName") or "",
            project_number=str(data.get("projectNumber") or ""),
            state=data.get("state") or "",
        )

    @property
    def active(self) -> bool:
        return self.state == ACTIVE_STATE

    @property
    def label(self) -> str:
        return self.display_name or self.project_id
