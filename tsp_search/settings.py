import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .messages import utc_now
from .solvers import HSASettings, SASettings


DEFAULT_STORE_PATH = Path("presets/settings.json")


@dataclass
class Preset:
    id: str
    name: str
    sa: SASettings
    hsa: HSASettings
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sa": self.sa.to_dict(),
            "hsa": self.hsa.to_dict(),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preset":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            sa=SASettings.from_dict(data.get("sa", {})),
            hsa=HSASettings.from_dict(data.get("hsa", {})),
            created_at=str(data.get("createdAt", "")),
        )


class SettingsStore:
    """
    Current SA/HSA settings plus named presets, optionally backed by a JSON
    file. Updates are validated before they replace the current settings.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self.sa = SASettings()
        self.hsa = HSASettings()
        self.presets: List[Preset] = []
        if self.path is not None and self.path.exists():
            self._load()

    def update_sa(self, **changes) -> SASettings:
        updated = self.sa.replace(**changes)
        updated.validate()
        self.sa = updated
        return updated

    def update_hsa(self, **changes) -> HSASettings:
        updated = self.hsa.replace(**changes)
        updated.validate()
        self.hsa = updated
        return updated

    def reset_sa(self) -> None:
        self.sa = SASettings()

    def reset_hsa(self) -> None:
        self.hsa = HSASettings()

    def save_preset(self, name: str) -> Preset:
        preset = Preset(
            id=f"preset-{uuid.uuid4().hex[:12]}",
            name=name.strip() or "Preset",
            sa=self.sa.replace(),
            hsa=self.hsa.replace(),
        )
        self.presets.insert(0, preset)
        return preset

    def find_preset(self, key: str) -> Optional[Preset]:
        for preset in self.presets:
            if preset.id == key or preset.name == key:
                return preset
        return None

    def apply_preset(self, key: str) -> bool:
        preset = self.find_preset(key)
        if preset is None:
            return False
        self.sa = preset.sa.replace()
        self.hsa = preset.hsa.replace()
        return True

    def delete_preset(self, key: str) -> bool:
        preset = self.find_preset(key)
        if preset is None:
            return False
        self.presets.remove(preset)
        return True

    def to_state(self) -> Dict[str, Any]:
        return {
            "sa": self.sa.to_dict(),
            "hsa": self.hsa.to_dict(),
            "presets": [p.to_dict() for p in self.presets],
        }

    def save(self, path: Optional[Path] = None) -> Path:
        path = Path(path) if path is not None else (self.path or DEFAULT_STORE_PATH)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_state(), indent=2))
        return path

    def _load(self) -> None:
        state = json.loads(self.path.read_text())
        # Stored values are merged over the defaults.
        self.sa = SASettings.from_dict({**SASettings().to_dict(), **state.get("sa", {})})
        self.hsa = HSASettings.from_dict({**HSASettings().to_dict(), **state.get("hsa", {})})
        self.presets = [Preset.from_dict(p) for p in state.get("presets", [])]
