"""
Voice model for cloned reference recordings.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Voice:
    """
    A reference recording a podcast can be read in.

    Attributes:
        id: Unique voice identifier (UUID)
        label: User-supplied display name
        file_name: Audio file name inside the voices directory
        mime_type: Content type of the stored recording
        created_at: ISO-8601 creation timestamp
    """
    id: str
    label: str
    file_name: str
    mime_type: str
    created_at: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Voice':
        return cls(
            id=data['id'],
            label=data['label'],
            file_name=data['file_name'],
            mime_type=data['mime_type'],
            created_at=data['created_at'],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
