# utils/school_models.py
"""
School data model

Overview for future devs:
- Cycle -> SchoolClass -> ImportedFile is the whole ownership tree. Nothing
  references across classes or cycles.
- Stored documents use camelCase keys (fileName, uploadDate, dataStructure,
  importedData); to_dict()/from_dict() are the only places that know that.
- SchoolStore (utils/school_store.py) persists these; pages never build the
  dicts by hand.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from utils.import_pipeline.schema import DataField


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ImportedFile:
    """
    One uploaded spreadsheet for one reporting period.

    upload_date is set once at creation; content can be replaced through the
    editable grid (re-validated on every save).
    """
    id: str
    file_name: str
    period: str
    upload_date: str
    record_count: int = 0
    content: Optional[List[Dict[str, Any]]] = None
    file_url: Optional[str] = None
    status: str = "completed"
    error_message: Optional[str] = None

    @classmethod
    def create(cls, file_name: str, period: str, rows: List[Dict[str, Any]],
               file_url: Optional[str] = None) -> "ImportedFile":
        return cls(
            id=new_id(),
            file_name=file_name,
            period=period,
            upload_date=utc_now_iso(),
            record_count=len(rows),
            content=rows,
            file_url=file_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "fileName": self.file_name,
            "period": self.period,
            "uploadDate": self.upload_date,
            "status": self.status,
            "recordCount": self.record_count,
            "content": self.content,
        }
        if self.file_url:
            data["fileUrl"] = self.file_url
        if self.error_message:
            data["errorMessage"] = self.error_message
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportedFile":
        content = data.get("content")
        return cls(
            id=str(data.get("id", "")),
            file_name=data.get("fileName", ""),
            period=data.get("period", ""),
            upload_date=data.get("uploadDate", ""),
            record_count=int(data.get("recordCount") or (len(content) if content else 0)),
            content=content,
            file_url=data.get("fileUrl"),
            status=data.get("status", "completed"),
            error_message=data.get("errorMessage"),
        )


@dataclass
class SchoolClass:
    id: str
    name: str
    enabled: bool = True
    data_structure: List[DataField] = field(default_factory=list)
    imported_data: List[ImportedFile] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "dataStructure": [f.to_dict() for f in self.data_structure],
            "importedData": [f.to_dict() for f in self.imported_data],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchoolClass":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            enabled=bool(data.get("enabled", True)),
            data_structure=[DataField.from_dict(f) for f in data.get("dataStructure") or []],
            imported_data=[ImportedFile.from_dict(f) for f in data.get("importedData") or []],
        )


@dataclass
class Cycle:
    id: str
    name: str
    enabled: bool = True
    classes: List[SchoolClass] = field(default_factory=list)

    def get_class(self, class_id: str) -> Optional[SchoolClass]:
        for school_class in self.classes:
            if school_class.id == class_id:
                return school_class
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "classes": [c.to_dict() for c in self.classes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cycle":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            enabled=bool(data.get("enabled", True)),
            classes=[SchoolClass.from_dict(c) for c in data.get("classes") or []],
        )


@dataclass
class SchoolSettings:
    name: str = "EduManager"
    logo: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "logo": self.logo}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SchoolSettings":
        data = data or {}
        return cls(name=data.get("name") or "EduManager", logo=data.get("logo") or "")


def default_cycles() -> List[Cycle]:
    """Seed used the first time the store is opened."""
    return [
        Cycle(
            id="1",
            name="École Primaire",
            classes=[SchoolClass(id="1", name="CP"), SchoolClass(id="2", name="CE1")],
        ),
        Cycle(
            id="2",
            name="Collège",
            classes=[SchoolClass(id="3", name="6ème"), SchoolClass(id="4", name="5ème")],
        ),
    ]
